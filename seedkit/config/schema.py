"""Pydantic models for YAML catalog validation.

These mirror seedkit/types.py structures but accept the loose YAML shapes
(e.g. a single alias string instead of a list) and coerce them.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from seedkit.types import CredentialVisibility, normalize_visibility


class CredentialYAML(BaseModel):
    """Validated schema for a credential kind in credentials.yaml."""

    key: str
    credential_name: str
    name: str
    aliases: list[str] = Field(default_factory=list)
    env_keys: dict[str, str] = Field(default_factory=dict)
    default_values: dict[str, str] = Field(default_factory=dict)

    @field_validator("aliases", mode="before")
    @classmethod
    def coerce_aliases(cls, v):
        if isinstance(v, str):
            return [v]
        return v or []


class ScenarioCredentialYAML(BaseModel):
    """One credential entry of a scenario."""

    alias: str
    assigned: bool = False
    name: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)
    visibility: list[CredentialVisibility] = Field(default_factory=list)

    @field_validator("visibility", mode="before")
    @classmethod
    def coerce_visibility(cls, v):
        return normalize_visibility(CredentialVisibility, v)


class ScenarioYAML(BaseModel):
    """Validated schema for a named scenario in scenarios.yaml."""

    name: str
    description: str = ""
    requires_user: bool = True
    credentials: list[ScenarioCredentialYAML] = Field(default_factory=list)

    @property
    def aliases(self) -> list[str]:
        return [entry.alias for entry in self.credentials]


class CredentialsConfig(BaseModel):
    """Root schema for credentials.yaml."""
    credentials: list[CredentialYAML] = Field(default_factory=list)


class ScenariosConfig(BaseModel):
    """Root schema for scenarios.yaml."""
    scenarios: list[ScenarioYAML] = Field(default_factory=list)
