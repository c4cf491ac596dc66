"""seedkit seed: seed from a SeedTestConfig file."""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console

from seedkit.cli.commands.scenario import print_result
from seedkit.types import SeedResult

console = Console()


def load_seed_file(path: Path) -> dict[str, Any]:
    """Parse a seed config file: .json as JSON, anything else as YAML."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text) or {}


async def _seed(payload: dict[str, Any]) -> SeedResult:
    from seedkit.db.database import dispose_engine, init_db
    from seedkit.seed import seed_test_data

    try:
        with console.status("[dim]Connecting to database...[/dim]"):
            await init_db()
        with console.status("[dim]Seeding...[/dim]"):
            return await seed_test_data(payload)
    finally:
        await dispose_engine()


def seed_file(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON or YAML seed config"),
):
    """Seed one user from a config file (camelCase or snake_case keys).

    Example file:
        user:
          email: admin@example.com
          organization: {auth0Id: org_123, name: Acme}
        credentials:
          openai: {name: Seed OpenAI, assigned: true}
    """
    try:
        payload = load_seed_file(path)
        result = asyncio.run(_seed(payload))
    except Exception as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    console.print("[bold green]Test data seeded.[/bold green]")
    print_result(result)
