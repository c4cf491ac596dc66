"""Idempotent create-or-reuse of seeded credential rows.

Identity for reconciliation is (owner, canonical type, display name). A
matching row is updated in place so any id the workflow graph already
references stays valid. When no row matches by name, an untouched row of
the same type whose name no other entry of the run asks for is repurposed
before a new one is inserted, which keeps row
counts stable when tests switch between scenarios. Rows that existed before
the run and were not touched are pruned at the end.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from seedkit.credentials.encryption import CredentialEncryption
from seedkit.db.models import CredentialModel, UserModel
from seedkit.db.repository import Repository
from seedkit.environment import build_credential_data
from seedkit.exceptions import AssignmentError
from seedkit.types import CredentialDefinition, CredentialVisibility, SeedCredentialEntry, TestEnvironment

logger = logging.getLogger(__name__)

# Older seed payloads send a generic apiKey for every credential kind.
LEGACY_API_KEY_FIELD = "apiKey"

DEFAULT_VISIBILITY = [CredentialVisibility.PRIVATE]


def primary_secret_field(definition: CredentialDefinition) -> Optional[str]:
    """The field a generic ``apiKey`` override should land in, if any."""
    fields = definition.field_names
    if len(fields) == 1:
        return fields[0]
    for field in fields:
        lowered = field.lower()
        if "key" in lowered or "token" in lowered:
            return field
    return None


def build_field_data(
    definition: CredentialDefinition,
    environment: TestEnvironment,
    overrides: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Env/default field values, overridden by the entry's ``data``."""
    data = build_credential_data(definition, environment)
    overrides = dict(overrides or {})
    if LEGACY_API_KEY_FIELD in overrides and LEGACY_API_KEY_FIELD not in definition.env_keys:
        target = primary_secret_field(definition)
        if target is not None:
            value = overrides.pop(LEGACY_API_KEY_FIELD)
            overrides.setdefault(target, value)
    data.update(overrides)
    return data


def _visibility_values(visibility: Iterable[CredentialVisibility]) -> list[str]:
    return [v.value if isinstance(v, CredentialVisibility) else str(v) for v in visibility]


class CredentialUpserter:
    """Reconciles one user's credential rows against a seed request.

    Usage::

        upserter = CredentialUpserter(repo, encryption, environment)
        await upserter.begin(user)
        for definition, entries in requested:
            upserter.reserve(definition, entries)
        for definition, entries in requested:
            for entry in entries:
                await upserter.upsert(definition, entry, user=user, organization_id=org.id)
        pruned = await upserter.prune(resolver.known_types())
    """

    def __init__(self, repository: Repository, encryption: CredentialEncryption, environment: TestEnvironment) -> None:
        self._repo = repository
        self._enc = encryption
        self._env = environment
        self._existing: list[CredentialModel] = []
        self._pool: dict[str, list[CredentialModel]] = {}
        self._claimed: dict[tuple[str, str], CredentialModel] = {}
        self._reserved: dict[str, set[str]] = {}
        self.touched_ids: set[str] = set()

    async def begin(self, user: UserModel) -> list[CredentialModel]:
        """Snapshot the user's current credentials as the reuse pool."""
        self._existing = await self._repo.list_user_credentials(user.id)
        self._pool = {}
        for credential in self._existing:
            self._pool.setdefault(credential.credential_name.lower(), []).append(credential)
        self._claimed = {}
        self._reserved = {}
        self.touched_ids = set()
        return list(self._existing)

    def reserve(self, definition: CredentialDefinition, entries: Iterable[SeedCredentialEntry]) -> None:
        """Hold back pooled rows whose names later entries of this run ask for.

        Call after :meth:`begin` and before the first :meth:`upsert` of the
        type, so a renamed entry never repurposes a row another entry matches
        by name.
        """
        names = {entry.name or definition.default_name for entry in entries if entry.create}
        self._reserved.setdefault(definition.credential_name.lower(), set()).update(names)

    def _take_from_pool(self, type_key: str, name: str) -> Optional[CredentialModel]:
        pool = self._pool.get(type_key) or []
        for index, credential in enumerate(pool):
            if credential.name == name:
                return pool.pop(index)
        reserved = self._reserved.get(type_key, set())
        for index, credential in enumerate(pool):
            if credential.name not in reserved:
                return pool.pop(index)
        return None

    async def upsert(
        self,
        definition: CredentialDefinition,
        entry: SeedCredentialEntry,
        *,
        user: UserModel,
        organization_id: str,
    ) -> Optional[CredentialModel]:
        """Create, rename-in-place or update the credential for one entry.

        Returns ``None`` when the entry opts out of creation.

        Raises:
            AssignmentError: ``create=False`` together with ``assigned=True``.
        """
        if not entry.create:
            if entry.assigned:
                raise AssignmentError(
                    f"Cannot assign credential '{definition.credential_name}' without creating it",
                    credential_type=definition.credential_name,
                )
            return None

        name = entry.name or definition.default_name
        type_key = definition.credential_name.lower()
        claim_key = (type_key, name)

        credential = self._claimed.get(claim_key) or self._take_from_pool(type_key, name)
        encrypted = self._enc.encrypt_data(build_field_data(definition, self._env, entry.data))
        visibility = _visibility_values(entry.visibility or DEFAULT_VISIBILITY)

        if credential is not None:
            if credential.name != name:
                logger.info("[Seed] Repurposing credential %s: '%s' → '%s'", credential.id, credential.name, name)
            credential.name = name
            credential.credential_name = definition.credential_name
            credential.encrypted_data = encrypted
            credential.visibility = visibility
            credential.organization_id = organization_id
        else:
            credential = CredentialModel(
                name=name,
                credential_name=definition.credential_name,
                encrypted_data=encrypted,
                user_id=user.id,
                organization_id=organization_id,
                visibility=visibility,
            )
            logger.info("[Seed] Creating credential '%s' (%s)", name, definition.credential_name)

        credential = await self._repo.save_credential(credential)
        self._claimed[claim_key] = credential
        self.touched_ids.add(credential.id)
        return credential

    async def prune(self, known_types: Iterable[str]) -> list[str]:
        """Delete pre-existing credentials of *known_types* not touched this run."""
        tracked = {t.lower() for t in known_types}
        stale = [
            c.id for c in self._existing
            if c.id not in self.touched_ids and c.credential_name.lower() in tracked
        ]
        if stale:
            await self._repo.delete_credentials(stale)
            logger.info("[Seed] Pruned %d stale credential(s)", len(stale))
        return stale

    async def ensure_orphaned(
        self,
        definition: CredentialDefinition,
        visibility: Optional[list[CredentialVisibility]] = None,
    ) -> CredentialModel:
        """Upsert an ownerless credential by (type, default name)."""
        existing = await self._repo.find_orphaned_credential(definition.credential_name, definition.default_name)
        encrypted = self._enc.encrypt_data(build_field_data(definition, self._env))

        if existing is not None:
            existing.encrypted_data = encrypted
            if visibility:
                existing.visibility = _visibility_values(visibility)
            return await self._repo.save_credential(existing)

        return await self._repo.save_credential(CredentialModel(
            name=definition.default_name,
            credential_name=definition.credential_name,
            encrypted_data=encrypted,
            user_id=None,
            organization_id=None,
            visibility=_visibility_values(visibility or DEFAULT_VISIBILITY),
        ))
