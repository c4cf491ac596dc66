"""seedkit: deterministic database fixtures for integration tests.

Usage:
    from seedkit import seed_scenario, reset_database

    await reset_database()
    result = await seed_scenario("user-with-openai")
"""

from seedkit.types import (
    TestUserRole, CredentialVisibility, ChatflowVisibility, Backend,
    CredentialDefinition, TestEnvironment, TestUser,
    SeedCredentialEntry, SeedUserConfig, SeedChatflowConfig, SeedOptions,
    SeedTestConfig, SeedScenarioOptions, SeedResult,
)
from seedkit.exceptions import (
    SeedError, ConfigurationError, ValidationError, AssignmentError,
    NotFoundError, UnsupportedBackendError, StorageError,
)
from seedkit.environment import load_test_environment, get_test_environment
from seedkit.seed import (
    reset_database, seed_baseline, create_orphaned_test_data,
    seed_scenario, seed_test_data, ensure_template,
)
from seedkit.version import __version__

__all__ = [
    "TestUserRole", "CredentialVisibility", "ChatflowVisibility", "Backend",
    "CredentialDefinition", "TestEnvironment", "TestUser",
    "SeedCredentialEntry", "SeedUserConfig", "SeedChatflowConfig", "SeedOptions",
    "SeedTestConfig", "SeedScenarioOptions", "SeedResult",
    "SeedError", "ConfigurationError", "ValidationError", "AssignmentError",
    "NotFoundError", "UnsupportedBackendError", "StorageError",
    "load_test_environment", "get_test_environment",
    "reset_database", "seed_baseline", "create_orphaned_test_data",
    "seed_scenario", "seed_test_data", "ensure_template",
    "__version__",
]
