"""Test fixtures: explicit test environment, Fernet encryption, in-memory SQLite.

All tests should use these fixtures for consistency.
"""

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from seedkit.credentials.encryption import CredentialEncryption
from seedkit.db.models import Base
from seedkit.db.repository import Repository
from seedkit.environment import load_test_environment

# Stable Fernet key for the entire test session (regenerated each run)
_TEST_FERNET_KEY: str = Fernet.generate_key().decode()

TEMPLATE_ID = "00000000-0000-4000-8000-00000000a11a"
ORG_AUTH0_ID = "org_test_enterprise"
ADMIN_EMAIL = "admin@seedkit.test"
BUILDER_EMAIL = "builder@seedkit.test"
MEMBER_EMAIL = "member@seedkit.test"
ISSUER = "https://seedkit-test.auth0.example"


@pytest.fixture
def env_vars():
    """Complete variable mapping; tests drop or override keys as needed."""
    return {
        "TEST_USER_ENTERPRISE_ADMIN_EMAIL": ADMIN_EMAIL,
        "TEST_USER_ENTERPRISE_BUILDER_EMAIL": BUILDER_EMAIL,
        "TEST_USER_ENTERPRISE_MEMBER_EMAIL": MEMBER_EMAIL,
        "TEST_USER_PASSWORD": "correct-horse-battery-staple",
        "TEST_ENTERPRISE_AUTH0_ORG_ID": ORG_AUTH0_ID,
        "TEST_ENTERPRISE_ORG_NAME": "Seedkit Enterprise",
        "INITIAL_CHATFLOW_IDS": f"{TEMPLATE_ID}, 11111111-1111-4111-8111-111111111111",
        "TEST_USER_ENTERPRISE_ADMIN_AUTH0_ID": "auth0|admin",
        "TEST_USER_ENTERPRISE_ADMIN_NAME": "Admin User",
        "AUTH0_ISSUER_BASE_URL": ISSUER,
        "AUTH0_CLIENT_ID": "client-id",
        "AUTH0_CLIENT_SECRET": "client-secret",
    }


@pytest.fixture
def environment(env_vars):
    """TestEnvironment built from env_vars only (the process env is ignored)."""
    return load_test_environment(env_vars)


@pytest.fixture
def encryption():
    """CredentialEncryption backed by the session Fernet key."""
    return CredentialEncryption(key=_TEST_FERNET_KEY)


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    """In-memory SQLite async session with schema created."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as s:
        yield s


@pytest.fixture
def repo(session):
    return Repository(session)


@pytest.fixture
async def organization(repo):
    return await repo.upsert_organization(ORG_AUTH0_ID, "Seedkit Enterprise")


@pytest.fixture
async def user(repo, organization):
    return await repo.upsert_user("auth0|admin", ADMIN_EMAIL, organization.id, "Admin User")
