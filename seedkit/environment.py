"""Environment loader for the seeders.

Validates the required test settings once, up front, and exposes them as a
typed :class:`TestEnvironment`: the organization defaults, the three
role-tagged users, the template chatflow ids and the credential catalog.
A missing setting fails construction with a ConfigurationError naming every
missing key, before any database access happens.
"""

from __future__ import annotations

import functools
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from seedkit.config.loader import load_credentials_yaml
from seedkit.exceptions import ConfigurationError
from seedkit.types import (
    CredentialDefinition,
    SeedOrganizationConfig,
    TestEnvironment,
    TestUser,
    TestUserRole,
)

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = [
    "TEST_USER_ENTERPRISE_ADMIN_EMAIL",
    "TEST_USER_ENTERPRISE_BUILDER_EMAIL",
    "TEST_USER_ENTERPRISE_MEMBER_EMAIL",
    "TEST_USER_PASSWORD",
    "TEST_ENTERPRISE_AUTH0_ORG_ID",
    "TEST_ENTERPRISE_ORG_NAME",
    "INITIAL_CHATFLOW_IDS",
]


class TestEnvSettings(BaseSettings):
    """Raw test settings read from the process environment and .env."""
    __test__ = False

    # ── Required ──
    test_user_enterprise_admin_email: str
    test_user_enterprise_builder_email: str
    test_user_enterprise_member_email: str
    test_user_password: str
    test_enterprise_auth0_org_id: str
    test_enterprise_org_name: str
    initial_chatflow_ids: str                        # comma-separated template ids

    # ── Optional per-role overrides ──
    test_user_enterprise_admin_auth0_id: Optional[str] = None
    test_user_enterprise_admin_name: Optional[str] = None
    test_user_enterprise_builder_auth0_id: Optional[str] = None
    test_user_enterprise_builder_name: Optional[str] = None
    test_user_enterprise_member_auth0_id: Optional[str] = None
    test_user_enterprise_member_name: Optional[str] = None

    # ── Auth0 password grant (only needed when a user has no *_AUTH0_ID) ──
    auth0_issuer_base_url: Optional[str] = None
    auth0_client_id: Optional[str] = None
    auth0_client_secret: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator(*[name.lower() for name in REQUIRED_ENV_VARS])
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @property
    def template_ids(self) -> list[str]:
        return [i.strip() for i in self.initial_chatflow_ids.split(",") if i.strip()]


class _ExplicitTestEnvSettings(TestEnvSettings):
    """Reads only the mapping it is constructed with. Used by tests and callers
    that pass an explicit environment instead of the process one."""

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings,
                                   dotenv_settings, file_secret_settings):
        return (init_settings,)


def _read_settings(env: Optional[Mapping[str, str]]) -> TestEnvSettings:
    try:
        if env is None:
            return TestEnvSettings()
        fields = TestEnvSettings.model_fields
        values = {k.lower(): v for k, v in env.items() if k.lower() in fields}
        return _ExplicitTestEnvSettings(**values)
    except PydanticValidationError as exc:
        bad = {str(err["loc"][0]).upper() for err in exc.errors() if err.get("loc")}
        missing = [name for name in REQUIRED_ENV_VARS if name in bad]
        missing += sorted(bad - set(missing))
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            missing=missing,
        ) from exc


def load_test_environment(
    env: Optional[Mapping[str, str]] = None,
    catalog_path: Optional[Path] = None,
) -> TestEnvironment:
    """Validate settings and build the TestEnvironment.

    Args:
        env: Explicit variable mapping. ``None`` reads the process environment
            (and ``.env``).
        catalog_path: Explicit credentials.yaml. ``None`` uses cwd, then defaults.

    Raises:
        ConfigurationError: naming every missing or blank required key.
    """
    settings = _read_settings(env)
    source: Mapping[str, str] = os.environ if env is None else env

    template_ids = settings.template_ids
    if not template_ids:
        raise ConfigurationError(
            "INITIAL_CHATFLOW_IDS does not contain any template id",
            missing=["INITIAL_CHATFLOW_IDS"],
        )

    users = {}
    for role in TestUserRole:
        prefix = f"test_user_enterprise_{role.value}"
        users[role] = TestUser(
            role=role,
            email=getattr(settings, f"{prefix}_email"),
            auth0_id=getattr(settings, f"{prefix}_auth0_id") or None,
            name=getattr(settings, f"{prefix}_name") or None,
        )

    credentials = load_credentials_yaml(catalog_path)
    credential_env = {
        var: source[var]
        for definition in credentials.values()
        for var in definition.env_keys.values()
        if source.get(var)
    }

    return TestEnvironment(
        organization=SeedOrganizationConfig(
            auth0_id=settings.test_enterprise_auth0_org_id,
            name=settings.test_enterprise_org_name,
        ),
        users=users,
        template_ids=template_ids,
        credentials=credentials,
        password=settings.test_user_password,
        auth0_issuer_base_url=settings.auth0_issuer_base_url,
        auth0_client_id=settings.auth0_client_id,
        auth0_client_secret=settings.auth0_client_secret,
        credential_env=credential_env,
    )


@functools.lru_cache(maxsize=1)
def get_test_environment() -> TestEnvironment:
    """Process-wide environment, validated on first use."""
    environment = load_test_environment()
    logger.info(
        "[Env] Loaded test environment: org=%s, %d credential kinds, template=%s",
        environment.organization.auth0_id,
        len(environment.credentials),
        environment.template_ids[0],
    )
    return environment


def resolve_initial_chatflow_id(environment: TestEnvironment) -> str:
    """The template chatflow every seeded user's chatflow is cloned from."""
    return environment.template_ids[0]


def build_credential_data(definition: CredentialDefinition, environment: TestEnvironment) -> dict[str, Any]:
    """Field blob for *definition*: env var value if set, else the catalog default."""
    data: dict[str, Any] = {}
    for field, env_var in definition.env_keys.items():
        data[field] = environment.credential_env.get(env_var) or definition.default_values.get(field)
    return data


def get_available_test_users(environment: Optional[TestEnvironment] = None) -> dict[str, dict[str, Optional[str]]]:
    env = environment or get_test_environment()
    return {role.value: {"email": user.email, "name": user.name} for role, user in env.users.items()}


def get_available_test_credentials(environment: Optional[TestEnvironment] = None) -> dict[str, dict[str, Any]]:
    """Catalog summary; ``has_env_vars`` tells whether real secrets are configured."""
    env = environment or get_test_environment()
    result = {}
    for key, definition in env.credentials.items():
        result[key] = {
            "name": definition.default_name,
            "credential_name": definition.credential_name,
            "has_env_vars": any(var in env.credential_env for var in definition.env_keys.values()),
        }
    return result
