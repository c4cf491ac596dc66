"""ORM models for the four entity kinds the seeders manage.

Tables: organization, user, credential, chat_flow
Ownerless rows (user_id IS NULL) are templates / orphaned baseline data.
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import DeclarativeBase
from datetime import datetime, timezone
import uuid


class Base(DeclarativeBase):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrganizationModel(Base):
    __tablename__ = "organization"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    auth0_id = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)


class UserModel(Base):
    __tablename__ = "user"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    auth0_id = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    organization_id = Column(String, ForeignKey("organization.id"), nullable=True, index=True)
    default_chatflow_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)


class CredentialModel(Base):
    __tablename__ = "credential"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)                 # display name
    credential_name = Column(String, nullable=False)      # canonical type
    encrypted_data = Column(Text, nullable=False)         # Fernet token of the JSON field blob
    user_id = Column(String, ForeignKey("user.id"), nullable=True, index=True)
    organization_id = Column(String, ForeignKey("organization.id"), nullable=True)
    visibility = Column(JSON, default=list)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    __table_args__ = (Index("ix_credential_user_type", "user_id", "credential_name"),)


class ChatflowModel(Base):
    __tablename__ = "chat_flow"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    flow_data = Column(Text, nullable=False)              # serialized node graph
    deployed = Column(Boolean, default=False)
    is_public = Column(Boolean, default=False)
    visibility = Column(JSON, default=list)
    category = Column(String, default="")
    type = Column(String, default="CHATFLOW")
    current_version = Column(Integer, default=1)
    parent_chatflow_id = Column(String, nullable=True)
    user_id = Column(String, ForeignKey("user.id"), nullable=True, index=True)
    organization_id = Column(String, ForeignKey("organization.id"), nullable=True)
    # opaque JSON-in-text settings copied from the template as-is
    chatbot_config = Column(Text, nullable=True)
    answers_config = Column(Text, nullable=True)
    api_config = Column(Text, nullable=True)
    analytic = Column(Text, nullable=True)
    speech_to_text = Column(Text, nullable=True)
    follow_up_prompts = Column(Text, nullable=True)
    browser_ext_config = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)


# Settings copied verbatim from a template fixture / template row to a clone.
CHATFLOW_PASSTHROUGH_FIELDS = (
    "chatbot_config",
    "answers_config",
    "api_config",
    "analytic",
    "speech_to_text",
    "follow_up_prompts",
    "browser_ext_config",
)
