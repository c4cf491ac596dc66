"""seedkit config: show resolved seedkit configuration."""

from rich import box
from rich.console import Console
from rich.table import Table

console = Console()


def config_show():
    """Show the resolved seedkit configuration.

    Reads from environment variables and .env file.
    The encryption key and database password are masked.

    Example:
        seedkit config
    """
    from sqlalchemy.engine import make_url

    from seedkit.config import SeedkitConfig
    cfg = SeedkitConfig()

    def mask(val: str) -> str:
        s = str(val)
        if len(s) <= 8:
            return "***"
        return s[:4] + "…" + "***"

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        show_lines=False,
        title="[bold]seedkit Configuration[/bold]",
    )
    table.add_column("Key", style="cyan", width=28)
    table.add_column("Value", width=55)
    table.add_column("Env Var", style="dim", width=38)

    sections = [
        ("App", ["debug", "log_level"]),
        ("Database", ["database_url"]),
        ("Credentials", ["credential_encryption_key"]),
        ("Template", ["template_fixture_path"]),
        ("Identity", ["identity_cache_ttl", "http_timeout"]),
    ]

    first = True
    for section_name, fields in sections:
        if not first:
            table.add_row("", "", "")
        first = False
        table.add_row(f"[bold dim]── {section_name} ──[/bold dim]", "", "")
        for attr in fields:
            val = getattr(cfg, attr, None)
            if val is None or val == "":
                display = "[dim](not set)[/dim]"
            elif attr == "credential_encryption_key":
                display = mask(val)
            elif attr == "database_url":
                display = make_url(val).render_as_string(hide_password=True)
            else:
                display = str(val)
            table.add_row(f"  {attr}", display, f"SEEDKIT_{attr.upper()}")

    console.print()
    console.print(table)
    console.print()
    console.print("[dim]Source: environment variables + .env file (prefix: SEEDKIT_)[/dim]")
