"""seedkit scenario: seed a named scenario."""

import asyncio
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from seedkit.types import SeedResult

console = Console()


def print_result(result: SeedResult) -> None:
    """Summary of a seed call: owner ids and one row per credential."""
    console.print(f"[bold]Organization:[/bold] [dim]{result.organization_id}[/dim]")
    console.print(f"[bold]User:[/bold]         [dim]{result.user_id}[/dim]")
    console.print(f"[bold]Chatflow:[/bold]     [cyan]{result.chatflow_id}[/cyan]")

    if result.credential_ids:
        table = Table(box=box.ROUNDED, header_style="bold dim", show_lines=False)
        table.add_column("Type", style="cyan", width=26)
        table.add_column("Credential", width=38)
        table.add_column("Assigned", justify="center", width=9)
        for credential_type, ids in result.credential_ids.items():
            for credential_id in ids:
                assigned = result.assignments.get(credential_type) == credential_id
                table.add_row(credential_type, credential_id, "[green]yes[/green]" if assigned else "[dim]no[/dim]")
        console.print()
        console.print(table)

    if result.pruned_ids:
        console.print(f"[dim]Pruned {len(result.pruned_ids)} stale credential(s)[/dim]")


async def _scenario(name: str, user_email: Optional[str], reset: bool) -> Optional[SeedResult]:
    from seedkit.db.database import dispose_engine, init_db
    from seedkit.seed import seed_scenario
    from seedkit.types import SeedScenarioOptions

    try:
        with console.status("[dim]Connecting to database...[/dim]"):
            await init_db()
        with console.status(f"[dim]Seeding scenario {name}...[/dim]"):
            return await seed_scenario(name, options=SeedScenarioOptions(user_email=user_email, reset=reset))
    finally:
        await dispose_engine()


def scenario_seed(
    name: str = typer.Argument(..., help="Scenario name (see `seedkit scenarios`)"),
    user_email: Optional[str] = typer.Option(None, "--user-email", "-u", help="Seed this user instead of the admin"),
    reset: bool = typer.Option(False, "--reset", help="Reset the database and recreate ownerless data first"),
):
    """Seed a named scenario for one of the test users.

    Example:
        seedkit scenario user-with-openai --reset
    """
    from seedkit.seed import get_scenario

    try:
        get_scenario(name)
        result = asyncio.run(_scenario(name, user_email, reset))
    except Exception as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    console.print(f"[bold green]Scenario '{name}' seeded.[/bold green]")
    if result is not None:
        print_result(result)
