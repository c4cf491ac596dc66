"""seedkit CLI: Typer application."""

import logging

import typer
from rich.console import Console

from seedkit.config import config
from seedkit.version import __version__

app = typer.Typer(
    name="seedkit",
    help="seedkit: deterministic database fixtures for integration tests.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
    log_level: str = typer.Option(config.log_level, "--log-level", help="Python logging level"),
):
    """seedkit CLI."""
    if version:
        console.print(f"seedkit v{__version__}")
        raise typer.Exit()
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


# ── Seeding ────────────────────────────────────────────────────────────────────
from seedkit.cli.commands import reset, baseline, scenario, seed  # noqa: E402

app.command(name="reset", help="Empty every application table")(reset.reset_db)
app.command(name="baseline", help="Seed organization, template and ownerless credentials")(baseline.baseline_db)
app.command(name="scenario", help="Seed a named scenario")(scenario.scenario_seed)
app.command(name="seed", help="Seed from a JSON/YAML SeedTestConfig file")(seed.seed_file)

# ── Inspection ─────────────────────────────────────────────────────────────────
from seedkit.cli.commands import catalog, config as config_cmd  # noqa: E402

app.command(name="scenarios", help="List named scenarios")(catalog.scenarios_list)
app.command(name="credentials", help="List credential kinds and whether secrets are set")(catalog.credentials_list)
app.command(name="users", help="List the environment's test users")(catalog.users_list)
app.command(name="config", help="Show resolved configuration")(config_cmd.config_show)


if __name__ == "__main__":
    app()
