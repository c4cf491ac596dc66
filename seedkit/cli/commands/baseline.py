"""seedkit baseline: organization, template chatflow and ownerless credentials."""

import asyncio

import typer
from rich.console import Console

console = Console()


async def _baseline(orphaned: bool) -> str:
    from seedkit.db.database import dispose_engine, init_db
    from seedkit.seed import create_orphaned_test_data, seed_baseline

    try:
        with console.status("[dim]Connecting to database...[/dim]"):
            await init_db()
        with console.status("[dim]Seeding baseline...[/dim]"):
            if orphaned:
                await create_orphaned_test_data()
            return await seed_baseline()
    finally:
        await dispose_engine()


def baseline_db(
    orphaned: bool = typer.Option(
        False, "--orphaned", help="Recreate the template and share the baseline credentials platform-wide first",
    ),
):
    """Seed the state every scenario starts from.

    Requires the TEST_* environment (see `seedkit users`) and
    SEEDKIT_DATABASE_URL.
    """
    try:
        organization_id = asyncio.run(_baseline(orphaned))
    except Exception as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    console.print("[bold green]Baseline seeded.[/bold green]")
    console.print(f"[bold]Organization:[/bold] [dim]{organization_id}[/dim]")
