"""Baseline seed: organization, template chatflow and ownerless credentials.

Every scenario starts from this state. The two baseline credentials have no
user or organization, which is how the application represents credentials
shared across tenants.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from seedkit.credentials import CredentialEncryption, CredentialResolver, CredentialUpserter, get_encryption
from seedkit.db.database import transaction
from seedkit.db.repository import Repository
from seedkit.environment import get_test_environment, resolve_initial_chatflow_id
from seedkit.seed.template import ensure_template
from seedkit.types import CredentialVisibility, TestEnvironment

logger = logging.getLogger(__name__)

BASELINE_CREDENTIALS = ("openai", "exa")

ORPHANED_VISIBILITY = [
    CredentialVisibility.PRIVATE,
    CredentialVisibility.PLATFORM,
    CredentialVisibility.ORGANIZATION,
]


async def _ensure_orphaned_credentials(
    repo: Repository,
    environment: TestEnvironment,
    encryption: CredentialEncryption,
    visibility: Optional[list[CredentialVisibility]] = None,
) -> list[str]:
    resolver = CredentialResolver(environment.credentials)
    upserter = CredentialUpserter(repo, encryption, environment)
    ids = []
    for key in BASELINE_CREDENTIALS:
        definition = resolver.require(key)
        logger.info("[Baseline] Ensuring ownerless credential: %s", definition.default_name)
        credential = await upserter.ensure_orphaned(definition, visibility)
        ids.append(credential.id)
    return ids


async def seed_baseline(
    session: Optional[AsyncSession] = None,
    *,
    environment: Optional[TestEnvironment] = None,
    encryption: Optional[CredentialEncryption] = None,
) -> str:
    """Ensure the template, the configured organization and the baseline credentials.

    Safe to call repeatedly. Returns the organization id.
    """
    env = environment or get_test_environment()
    enc = encryption or get_encryption()
    template_id = resolve_initial_chatflow_id(env)

    try:
        async with transaction(session, "seed_baseline") as s:
            repo = Repository(s)
            await ensure_template(repo, template_id)
            logger.info("[Baseline] Setting up organization: %s", env.organization.name)
            organization = await repo.upsert_organization(env.organization.auth0_id, env.organization.name)
            await _ensure_orphaned_credentials(repo, env, enc)
            organization_id = organization.id
    except Exception as exc:
        logger.error("[Baseline] Baseline seed failed: %s", exc)
        raise

    logger.info("[Baseline] Baseline seed complete (org=%s, template=%s)", organization_id, template_id)
    return organization_id


async def create_orphaned_test_data(
    session: Optional[AsyncSession] = None,
    *,
    environment: Optional[TestEnvironment] = None,
    encryption: Optional[CredentialEncryption] = None,
) -> list[str]:
    """Recreate the template from its fixture and ensure the shared baseline credentials.

    The credentials are made visible to the platform and the organization.
    Returns their ids.
    """
    env = environment or get_test_environment()
    enc = encryption or get_encryption()
    template_id = resolve_initial_chatflow_id(env)

    try:
        async with transaction(session, "create_orphaned_test_data") as s:
            repo = Repository(s)
            existing = await repo.get_chatflow(template_id)
            if existing is not None:
                await repo.remove(existing)
            await ensure_template(repo, template_id)
            credential_ids = await _ensure_orphaned_credentials(repo, env, enc, ORPHANED_VISIBILITY)
    except Exception as exc:
        logger.error("[Baseline] Orphaned test data creation failed: %s", exc)
        raise

    logger.info("[Baseline] Orphaned test data created (template=%s)", template_id)
    return credential_ids
