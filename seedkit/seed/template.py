"""Ensures the ownerless template chatflow exists before anything is cloned from it."""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from seedkit.config import config
from seedkit.db.models import CHATFLOW_PASSTHROUGH_FIELDS, ChatflowModel
from seedkit.db.repository import Repository
from seedkit.exceptions import NotFoundError
from seedkit.types import ChatflowVisibility

logger = logging.getLogger(__name__)

DEFAULT_FIXTURE_PATH = Path(__file__).resolve().parent.parent / "fixtures" / "default-chatflow.json"

TEMPLATE_VISIBILITY = [ChatflowVisibility.PRIVATE.value, ChatflowVisibility.ANSWERAI.value]


def load_template_fixture(path: Optional[Union[str, Path]] = None) -> dict[str, Any]:
    """Read the template fixture: *path*, else SEEDKIT_TEMPLATE_FIXTURE_PATH, else the bundled one."""
    resolved = Path(path or config.template_fixture_path or DEFAULT_FIXTURE_PATH)
    if not resolved.exists():
        raise NotFoundError(
            f"Template fixture not found: {resolved}",
            resource="template_fixture",
            resource_id=str(resolved),
        )
    return json.loads(resolved.read_text(encoding="utf-8"))


def is_template(chatflow: Optional[ChatflowModel]) -> bool:
    return chatflow is not None and chatflow.user_id is None and chatflow.organization_id is None


def build_template(template_id: str, fixture: dict[str, Any]) -> ChatflowModel:
    flow_data = fixture.get("flowData") or {}
    if not isinstance(flow_data, str):
        flow_data = json.dumps(flow_data)

    template = ChatflowModel(
        id=template_id,
        name=fixture.get("name") or "Default Template",
        description=fixture.get("description") or "",
        flow_data=flow_data,
        deployed=False,
        is_public=False,
        visibility=list(TEMPLATE_VISIBILITY),
        current_version=fixture.get("currentVersion") or 1,
        category=fixture.get("category") or "",
        type=fixture.get("type") or "CHATFLOW",
        user_id=None,
        organization_id=None,
    )
    for field in CHATFLOW_PASSTHROUGH_FIELDS:
        value = fixture.get(to_camel(field))
        if isinstance(value, str):
            setattr(template, field, value)
    return template


async def ensure_template(
    session: Union[AsyncSession, Repository],
    template_id: str,
    fixture_path: Optional[Union[str, Path]] = None,
) -> ChatflowModel:
    """Make sure *template_id* is an ownerless chatflow built from the fixture.

    An ownerless row is left as is. A row owned by a user or organization is
    deleted and replaced. Flushes only; the caller owns the transaction.

    Raises:
        NotFoundError: the fixture file does not exist.
    """
    repo = session if isinstance(session, Repository) else Repository(session)
    existing = await repo.get_chatflow(template_id)
    if is_template(existing):
        return existing

    fixture = load_template_fixture(fixture_path)
    if existing is not None:
        logger.warning(
            "[Template] Chatflow %s is owned by user=%s org=%s; replacing it with the template",
            template_id, existing.user_id, existing.organization_id,
        )
        await repo.remove(existing)

    template = await repo.save_chatflow(build_template(template_id, fixture))
    logger.info("[Template] Provisioned template chatflow %s (%s)", template_id, template.name)
    return template
