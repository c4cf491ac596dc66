"""Seed entry points: reset, baseline, template, scenarios."""

from seedkit.seed.baseline import create_orphaned_test_data, seed_baseline
from seedkit.seed.composer import SCENARIOS, get_scenario, seed_scenario, seed_test_data
from seedkit.seed.reset import IGNORED_TABLES, list_user_tables, reset_database, resolve_backend
from seedkit.seed.template import ensure_template, load_template_fixture

__all__ = [
    "IGNORED_TABLES",
    "SCENARIOS",
    "create_orphaned_test_data",
    "ensure_template",
    "get_scenario",
    "list_user_tables",
    "load_template_fixture",
    "reset_database",
    "resolve_backend",
    "seed_baseline",
    "seed_scenario",
    "seed_test_data",
]
