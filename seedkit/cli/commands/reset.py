"""seedkit reset: empty every application table."""

import asyncio

import typer
from rich.console import Console

console = Console()


async def _reset() -> list[str]:
    from seedkit.db.database import dispose_engine
    from seedkit.seed import reset_database

    try:
        with console.status("[dim]Resetting database...[/dim]"):
            return await reset_database()
    finally:
        await dispose_engine()


def reset_db(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Delete all rows from every application table and reset identity counters.

    Migration bookkeeping tables are kept.

    Example:
        seedkit reset --yes
    """
    if not yes:
        typer.confirm("This deletes every row in the configured database. Continue?", abort=True)
    try:
        tables = asyncio.run(_reset())
    except Exception as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if not tables:
        console.print("[dim]No tables to reset.[/dim]")
        return
    console.print(f"[bold green]Cleared {len(tables)} table(s):[/bold green] [dim]{', '.join(tables)}[/dim]")
