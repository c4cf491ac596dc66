"""Scenario composer: turns a seed request into database state.

seed_test_data() is the general entry point. It reconciles the user's
credentials, rebuilds the user's chatflow from the template and binds the
assigned credentials into the graph, all in one transaction.
seed_scenario() expands a named scenario from scenarios.yaml into such a
request for one of the environment's test users.
"""

import logging
from collections import defaultdict
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from seedkit.config import load_scenarios_yaml
from seedkit.config.schema import ScenarioYAML
from seedkit.credentials import (
    CredentialEncryption,
    CredentialResolver,
    CredentialUpserter,
    get_encryption,
    normalize_entries,
)
from seedkit.db.database import transaction
from seedkit.db.models import CHATFLOW_PASSTHROUGH_FIELDS, ChatflowModel, UserModel
from seedkit.db.repository import Repository
from seedkit.environment import get_test_environment, resolve_initial_chatflow_id
from seedkit.exceptions import ConfigurationError, NotFoundError, ValidationError
from seedkit.graph import FlowGraph, apply_bindings
from seedkit.identity import IdentityResolver, get_identity_resolver
from seedkit.seed.baseline import create_orphaned_test_data, seed_baseline
from seedkit.seed.reset import reset_database
from seedkit.seed.template import ensure_template
from seedkit.types import (
    ChatflowVisibility,
    SeedCredentialEntry,
    SeedResult,
    SeedScenarioOptions,
    SeedTestConfig,
    SeedUserConfig,
    TestEnvironment,
    TestUserRole,
)

logger = logging.getLogger(__name__)

SCENARIOS: dict[str, ScenarioYAML] = load_scenarios_yaml()

DEFAULT_CHATFLOW_NAME = "Seeded Chatflow"


def _validate_config(config: Union[SeedTestConfig, dict[str, Any]]) -> SeedTestConfig:
    if isinstance(config, SeedTestConfig):
        return config
    if not isinstance(config, dict) or not config.get("user"):
        raise ConfigurationError("User configuration is required", missing=["user"])
    try:
        return SeedTestConfig.model_validate(config)
    except PydanticValidationError as exc:
        invalid = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
        raise ValidationError(f"Invalid seed configuration: {', '.join(invalid)}", invalid=invalid) from exc


async def _resolve_auth0_id(
    repo: Repository,
    user_config: SeedUserConfig,
    environment: TestEnvironment,
    identity_resolver: Optional[IdentityResolver],
) -> str:
    """Configured id, else the id of an existing row with this email, else identity resolution."""
    if user_config.auth0_id:
        return user_config.auth0_id

    existing = await repo.get_user_by_email(user_config.email)
    if existing is not None and existing.auth0_id:
        return existing.auth0_id

    match = environment.user_by_email(user_config.email)
    if match is None:
        raise ConfigurationError(
            f"auth0Id missing for {user_config.email}. Provide TEST_USER_*_AUTH0_ID or make sure "
            f"the user has logged in once so the existing record can be reused."
        )
    resolver = identity_resolver or get_identity_resolver(environment)
    return await resolver.resolve(match)


def _clone_chatflow(
    template: ChatflowModel,
    flow_data: str,
    config: SeedTestConfig,
    user: UserModel,
    organization_id: str,
) -> ChatflowModel:
    description = config.chatflow.description
    chatflow = ChatflowModel(
        name=config.chatflow.name or template.name or DEFAULT_CHATFLOW_NAME,
        description=description if description is not None else template.description,
        flow_data=flow_data,
        deployed=bool(template.deployed),
        is_public=bool(template.is_public),
        visibility=list(template.visibility or [ChatflowVisibility.PRIVATE.value]),
        category=template.category,
        type=template.type,
        current_version=template.current_version or 1,
        parent_chatflow_id=template.id,
        user_id=user.id,
        organization_id=organization_id,
    )
    for field in CHATFLOW_PASSTHROUGH_FIELDS:
        setattr(chatflow, field, getattr(template, field))
    return chatflow


async def seed_test_data(
    config: Union[SeedTestConfig, dict[str, Any]],
    session: Optional[AsyncSession] = None,
    *,
    environment: Optional[TestEnvironment] = None,
    encryption: Optional[CredentialEncryption] = None,
    identity_resolver: Optional[IdentityResolver] = None,
    operation: str = "seed_test_data",
) -> SeedResult:
    """Seed one user: organization, credentials and a chatflow with bindings.

    Args:
        config: SeedTestConfig, or its camelCase/snake_case dict form.
        session: Session to run in. ``None`` opens one from the configured engine.
        environment: Test environment. ``None`` uses the process-wide one.
        encryption: Credential encryption. ``None`` uses SEEDKIT_CREDENTIAL_ENCRYPTION_KEY.
        identity_resolver: Used when the user's auth0 id has to be looked up.
        operation: Label carried by a StorageError raised from this call.

    Raises:
        ConfigurationError: no user, or no way to determine the user's auth0 id.
        ValidationError: malformed config or unknown credential alias.
        AssignmentError: an entry is assigned but not created.
        NotFoundError: template or preserved chatflow missing.
        StorageError: a database statement failed.
    """
    config = _validate_config(config)
    env = environment or get_test_environment()
    enc = encryption or get_encryption()
    resolver = CredentialResolver(env.credentials)
    resolver.validate_aliases(config.credentials)
    requested = [
        (resolver.require(alias), normalize_entries(raw))
        for alias, raw in config.credentials.items()
    ]
    template_id = config.chatflow.template_id or resolve_initial_chatflow_id(env)
    preserve = config.options.preserve_existing_chatflow

    logger.info("[Seed] Seeding test data for %s", config.user.email)
    try:
        async with transaction(session, operation) as s:
            repo = Repository(s)
            await ensure_template(repo, template_id)

            auth0_id = await _resolve_auth0_id(repo, config.user, env, identity_resolver)
            organization = await repo.upsert_organization(
                config.user.organization.auth0_id, config.user.organization.name,
            )
            user = await repo.upsert_user(auth0_id, config.user.email, organization.id, config.user.name)

            upserter = CredentialUpserter(repo, enc, env)
            await upserter.begin(user)
            for definition, entries in requested:
                upserter.reserve(definition, entries)
            credential_ids: dict[str, list[str]] = defaultdict(list)
            assignments: dict[str, str] = {}
            for definition, entries in requested:
                for entry in entries:
                    credential = await upserter.upsert(
                        definition, entry, user=user, organization_id=organization.id,
                    )
                    if credential is None:
                        continue
                    credential_ids[definition.credential_name].append(credential.id)
                    if entry.assigned:
                        assignments[definition.credential_name] = credential.id

            pruned: list[str] = []
            if preserve:
                chatflow = await repo.get_chatflow(user.default_chatflow_id) if user.default_chatflow_id else None
                if chatflow is None:
                    raise NotFoundError(
                        f"No existing chatflow to preserve for {config.user.email}",
                        resource="chatflow",
                        resource_id=user.default_chatflow_id or "",
                    )
                graph = FlowGraph.parse(chatflow.flow_data)
                apply_bindings(graph, resolver.known_types(), assignments)
                chatflow.flow_data = graph.dumps()
                chatflow = await repo.save_chatflow(chatflow)
            else:
                pruned = await upserter.prune(resolver.known_types())
                await repo.delete_user_chatflows(user.id)

                template = await repo.get_chatflow(template_id)
                if template is None:
                    raise NotFoundError(
                        f"Template chatflow {template_id} not found",
                        resource="chatflow",
                        resource_id=template_id,
                    )
                graph = FlowGraph.parse(template.flow_data)
                apply_bindings(graph, resolver.known_types(), assignments)
                chatflow = await repo.save_chatflow(
                    _clone_chatflow(template, graph.dumps(), config, user, organization.id)
                )
                await repo.set_default_chatflow(user, chatflow.id)

            result = SeedResult(
                organization_id=organization.id,
                user_id=user.id,
                chatflow_id=chatflow.id,
                credential_ids=dict(credential_ids),
                assignments=assignments,
                pruned_ids=pruned,
            )
    except Exception as exc:
        logger.error("[Seed] Test data seed failed: %s", exc)
        raise

    logger.info(
        "[Seed] Test data seed complete (user=%s, org=%s, chatflow=%s, %d assignment(s))",
        result.user_id, result.organization_id, result.chatflow_id, len(result.assignments),
    )
    return result


def get_scenario(name: str) -> ScenarioYAML:
    scenario = SCENARIOS.get(name)
    if scenario is None:
        raise ValidationError(f"Unknown scenario: {name}", invalid=[name])
    return scenario


async def _scenario_user(
    session: Optional[AsyncSession],
    environment: TestEnvironment,
    email: Optional[str],
    operation: str,
) -> SeedUserConfig:
    """The environment user for *email* (admin when omitted), else an existing DB user."""
    organization = environment.organization
    test_user = environment.users[TestUserRole.ADMIN] if email is None else environment.user_by_email(email)
    if test_user is not None:
        return SeedUserConfig(
            email=test_user.email,
            organization=organization,
            auth0_id=test_user.auth0_id,
            name=test_user.name or test_user.email,
        )

    async with transaction(session, operation) as s:
        existing = await Repository(s).get_user_by_email(email)
    if existing is None:
        raise NotFoundError(f"Unknown user: {email}", resource="user", resource_id=email)
    return SeedUserConfig(
        email=existing.email,
        organization=organization,
        auth0_id=existing.auth0_id,
        name=existing.name or existing.email,
    )


async def seed_scenario(
    name: str,
    session: Optional[AsyncSession] = None,
    options: Union[SeedScenarioOptions, dict[str, Any], None] = None,
    *,
    environment: Optional[TestEnvironment] = None,
    encryption: Optional[CredentialEncryption] = None,
    identity_resolver: Optional[IdentityResolver] = None,
) -> Optional[SeedResult]:
    """Seed a named scenario.

    The scenario name and its aliases are validated before the database is
    touched. ``options.reset`` wipes the database and recreates the ownerless
    data first. Returns ``None`` for scenarios without a user (baseline).
    """
    opts = options if isinstance(options, SeedScenarioOptions) else SeedScenarioOptions.model_validate(options or {})
    scenario = get_scenario(name)
    env = environment or get_test_environment()
    resolver = CredentialResolver(env.credentials)
    resolver.validate_aliases(scenario.aliases)

    logger.info("[Seed] Starting scenario '%s'", name)
    if opts.reset:
        await reset_database(session)
        await create_orphaned_test_data(session, environment=env, encryption=encryption)

    if not scenario.requires_user:
        await seed_baseline(session, environment=env, encryption=encryption)
        return None

    operation = f"seed_scenario:{name}"
    user = await _scenario_user(session, env, opts.user_email, operation)
    logger.info("[Seed] Using user: %s", user.email)

    credentials: dict[str, list[SeedCredentialEntry]] = {}
    for item in scenario.credentials:
        credentials.setdefault(item.alias, []).append(SeedCredentialEntry(
            name=item.name,
            assigned=item.assigned,
            data=item.data,
            visibility=item.visibility,
        ))

    return await seed_test_data(
        SeedTestConfig(user=user, credentials=credentials),
        session,
        environment=env,
        encryption=encryption,
        identity_resolver=identity_resolver,
        operation=operation,
    )
