"""seedkit scenarios / credentials / users: inspect the catalogs and test environment."""

import typer
from rich import box
from rich.console import Console
from rich.table import Table

console = Console()


def scenarios_list():
    """List the named scenarios and the credentials each one creates."""
    from seedkit.seed import SCENARIOS

    table = Table(box=box.ROUNDED, header_style="bold dim", show_lines=False,
                  title=f"[bold]{len(SCENARIOS)} Scenarios[/bold]")
    table.add_column("Name", style="cyan", width=34)
    table.add_column("Credentials", width=44)
    table.add_column("Description", style="dim")

    for name, scenario in SCENARIOS.items():
        credentials = ", ".join(
            f"[bold]{c.alias}[/bold]" if c.assigned else c.alias for c in scenario.credentials
        )
        table.add_row(name, credentials or "[dim]-[/dim]", scenario.description)

    console.print()
    console.print(table)
    console.print("[dim]Bold credentials are bound into the seeded chatflow.[/dim]")


def credentials_list():
    """List credential kinds and whether their secrets come from the environment."""
    from seedkit.environment import get_available_test_credentials

    try:
        available = get_available_test_credentials()
    except Exception as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    table = Table(box=box.ROUNDED, header_style="bold dim", show_lines=False,
                  title=f"[bold]{len(available)} Credential Kinds[/bold]")
    table.add_column("Key", style="cyan", width=14)
    table.add_column("Type", width=26)
    table.add_column("Default Name", width=28)
    table.add_column("Env", justify="center", width=6)

    for key, info in available.items():
        table.add_row(
            key,
            info["credential_name"],
            info["name"],
            "[green]set[/green]" if info["has_env_vars"] else "[dim]-[/dim]",
        )
    console.print()
    console.print(table)


def users_list():
    """List the role-tagged test users from the environment."""
    from seedkit.environment import get_available_test_users

    try:
        users = get_available_test_users()
    except Exception as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    table = Table(box=box.ROUNDED, header_style="bold dim", show_lines=False,
                  title="[bold]Test Users[/bold]")
    table.add_column("Role", style="cyan", width=10)
    table.add_column("Email", width=40)
    table.add_column("Name", style="dim")

    for role, info in users.items():
        table.add_row(role, info["email"], info["name"] or "")
    console.print()
    console.print(table)
