"""Alias → CredentialDefinition resolution.

Single source of truth for matching the many spellings scenarios use
("openai", "OpenAIApi", "open_ai") to one canonical credential type.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from seedkit.exceptions import ValidationError
from seedkit.types import CredentialDefinition, SeedCredentialEntry


class CredentialResolver:
    """Case-insensitive lookup by canonical type or any alias.

    Args:
        definitions: Catalog key → definition, as built by the environment loader.
    """

    def __init__(self, definitions: dict[str, CredentialDefinition]) -> None:
        self._definitions = list(definitions.values())
        self._index: dict[str, CredentialDefinition] = {}
        for definition in self._definitions:
            for name in (definition.credential_name, definition.key, *definition.aliases):
                self._index.setdefault(name.strip().lower(), definition)

    def resolve(self, alias_or_type: str) -> Optional[CredentialDefinition]:
        if not isinstance(alias_or_type, str):
            return None
        return self._index.get(alias_or_type.strip().lower())

    def require(self, alias_or_type: str) -> CredentialDefinition:
        definition = self.resolve(alias_or_type)
        if definition is None:
            raise ValidationError(
                f"Unknown credential alias: {alias_or_type}",
                invalid=[alias_or_type],
            )
        return definition

    def validate_aliases(self, aliases: Iterable[str]) -> None:
        """Raise one ValidationError naming every unknown alias."""
        unknown = [alias for alias in aliases if self.resolve(alias) is None]
        if unknown:
            raise ValidationError(
                f"Unknown credential alias(es): {', '.join(unknown)}",
                invalid=unknown,
            )

    def known_types(self) -> list[str]:
        """Canonical types of every catalog entry, in catalog order."""
        return [d.credential_name for d in self._definitions]

    def __iter__(self):
        return iter(self._definitions)


def normalize_entries(
    config: Union[None, SeedCredentialEntry, dict, list],
) -> list[SeedCredentialEntry]:
    """Always a list of entries, whether given nothing, one entry or many."""
    if config is None:
        return []
    items = config if isinstance(config, list) else [config]
    return [
        item if isinstance(item, SeedCredentialEntry) else SeedCredentialEntry.model_validate(item)
        for item in items
    ]
