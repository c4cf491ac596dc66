"""All shared types, enums, and seed payload shapes. Everything imports from here."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ── Enums ──────────────────────────────────────────────────────────────

class TestUserRole(str, Enum):
    ADMIN = "admin"
    BUILDER = "builder"
    MEMBER = "member"

    # stop pytest from collecting this as a test class
    __test__ = False

class CredentialVisibility(str, Enum):
    PRIVATE = "Private"
    ORGANIZATION = "Organization"
    PLATFORM = "Platform"

class ChatflowVisibility(str, Enum):
    PRIVATE = "Private"
    ORGANIZATION = "Organization"
    ANSWERAI = "AnswerAI"
    MARKETPLACE = "Marketplace"

class Backend(str, Enum):
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


def normalize_visibility(enum_cls, values):
    """Accept visibility tags in any case ("private", "PRIVATE", "Private")."""
    if values is None:
        return []
    coerced = []
    for value in values:
        if isinstance(value, str):
            lowered = value.lower()
            match = next((v for v in enum_cls if v.value.lower() == lowered), None)
            coerced.append(match if match is not None else value)
        else:
            coerced.append(value)
    return coerced


class _CamelModel(BaseModel):
    """Accepts both the camelCase keys used by the HTTP payloads and snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Credential catalog ─────────────────────────────────────────────────

class CredentialDefinition(BaseModel):
    """A credential kind the seeder knows how to create and bind.

    Immutable for the process lifetime; drives both creation and resolution.
    """
    model_config = ConfigDict(frozen=True)

    key: str                                # catalog key, e.g. "openai"
    credential_name: str                    # canonical type, e.g. "openAIApi"
    default_name: str                       # display name used when an entry has none
    aliases: tuple[str, ...] = ()
    env_keys: dict[str, str] = Field(default_factory=dict)        # field -> env var
    default_values: dict[str, str] = Field(default_factory=dict)  # field -> fallback

    @property
    def field_names(self) -> list[str]:
        return list(self.env_keys)


# ── Environment ────────────────────────────────────────────────────────

class SeedOrganizationConfig(_CamelModel):
    auth0_id: str
    name: str


class TestUser(BaseModel):
    """A role-tagged account defined by the test environment."""
    __test__ = False

    role: TestUserRole
    email: str
    auth0_id: Optional[str] = None
    name: Optional[str] = None


class TestEnvironment(BaseModel):
    """Validated view of the test environment, built once by load_test_environment()."""
    __test__ = False

    organization: SeedOrganizationConfig
    users: dict[TestUserRole, TestUser]
    template_ids: list[str]
    credentials: dict[str, CredentialDefinition]
    password: str = ""
    auth0_issuer_base_url: Optional[str] = None
    auth0_client_id: Optional[str] = None
    auth0_client_secret: Optional[str] = None
    # raw env values for credential fields, keyed by env var name
    credential_env: dict[str, str] = Field(default_factory=dict)

    def user_by_email(self, email: str) -> Optional[TestUser]:
        lowered = email.lower()
        return next((u for u in self.users.values() if u.email.lower() == lowered), None)


# ── Seed payloads ──────────────────────────────────────────────────────

class SeedCredentialEntry(_CamelModel):
    name: Optional[str] = None              # display name; defaults to the definition's
    assigned: bool = False                  # bind into the seeded chatflow
    visibility: list[CredentialVisibility] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)  # field overrides
    create: bool = True                     # False skips creation but still clears bindings

    @field_validator("visibility", mode="before")
    @classmethod
    def coerce_visibility(cls, v):
        return normalize_visibility(CredentialVisibility, v)


SeedCredentialConfig = Union[SeedCredentialEntry, list[SeedCredentialEntry]]


class SeedUserConfig(_CamelModel):
    email: str
    organization: SeedOrganizationConfig
    auth0_id: Optional[str] = None
    name: Optional[str] = None


class SeedChatflowConfig(_CamelModel):
    template_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None


class SeedOptions(_CamelModel):
    preserve_existing_chatflow: bool = False


class SeedTestConfig(_CamelModel):
    """General-purpose seed request consumed by seed_test_data()."""
    user: SeedUserConfig
    credentials: dict[str, SeedCredentialConfig] = Field(default_factory=dict)
    chatflow: SeedChatflowConfig = Field(default_factory=SeedChatflowConfig)
    options: SeedOptions = Field(default_factory=SeedOptions)


class SeedScenarioOptions(_CamelModel):
    user_email: Optional[str] = None
    reset: bool = False                     # reset + orphaned data before seeding


class SeedResult(BaseModel):
    """What a seed call left behind. Returned so tests can assert on ids."""
    organization_id: str
    user_id: Optional[str] = None
    chatflow_id: Optional[str] = None
    credential_ids: dict[str, list[str]] = Field(default_factory=dict)  # type -> ids
    assignments: dict[str, str] = Field(default_factory=dict)           # type -> id
    pruned_ids: list[str] = Field(default_factory=list)
