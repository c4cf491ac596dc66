"""Baseline seed and ownerless test data."""

from seedkit.db.models import ChatflowModel, CredentialModel, OrganizationModel
from seedkit.seed import create_orphaned_test_data, seed_baseline

from tests.conftest import ORG_AUTH0_ID, TEMPLATE_ID


async def test_seed_baseline(session, repo, environment, encryption):
    organization_id = await seed_baseline(session, environment=environment, encryption=encryption)

    organization = await repo.get_organization_by_auth0_id(ORG_AUTH0_ID)
    assert organization.id == organization_id
    template = await repo.get_chatflow(TEMPLATE_ID)
    assert template is not None and template.user_id is None

    orphaned = await repo.list_orphaned_credentials()
    assert sorted(c.credential_name for c in orphaned) == ["exaSearchApi", "openAIApi"]
    assert all(c.visibility == ["Private"] for c in orphaned)
    assert encryption.decrypt_data(
        next(c for c in orphaned if c.credential_name == "openAIApi").encrypted_data
    ) == {"openAIApiKey": "test-openai-api-key"}


async def test_seed_baseline_is_idempotent(session, repo, environment, encryption):
    first = await seed_baseline(session, environment=environment, encryption=encryption)
    second = await seed_baseline(session, environment=environment, encryption=encryption)

    assert first == second
    assert await repo.count(OrganizationModel) == 1
    assert await repo.count(ChatflowModel) == 1
    assert await repo.count(CredentialModel) == 2


async def test_seed_baseline_renames_organization(session, repo, environment, encryption):
    await repo.upsert_organization(ORG_AUTH0_ID, "Stale Name")
    await repo.commit()

    await seed_baseline(session, environment=environment, encryption=encryption)
    organization = await repo.get_organization_by_auth0_id(ORG_AUTH0_ID)
    assert organization.name == "Seedkit Enterprise"


async def test_orphaned_data_shares_credentials(session, repo, environment, encryption):
    await seed_baseline(session, environment=environment, encryption=encryption)
    template = await repo.get_chatflow(TEMPLATE_ID)
    template.name = "Edited"
    await repo.commit()

    ids = await create_orphaned_test_data(session, environment=environment, encryption=encryption)

    assert len(ids) == 2
    orphaned = await repo.list_orphaned_credentials()
    assert sorted(c.id for c in orphaned) == sorted(ids)
    assert all(c.visibility == ["Private", "Platform", "Organization"] for c in orphaned)
    recreated = await repo.get_chatflow(TEMPLATE_ID)
    assert recreated.name == "Default Sidekick"
