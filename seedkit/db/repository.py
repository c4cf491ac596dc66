"""Data access layer for the four seeded entity kinds.

This is the ONLY layer that talks to the ORM. Methods flush but never
commit: the public seed entry points own the transaction so that one seed
call becomes visible atomically.
"""

from __future__ import annotations

from typing import Optional, Iterable

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from seedkit.db.models import OrganizationModel, UserModel, CredentialModel, ChatflowModel


class Repository:
    """All database operations used by the seeders."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def count(self, model) -> int:
        result = await self.session.execute(select(func.count()).select_from(model))
        return int(result.scalar_one())

    async def remove(self, instance) -> None:
        """Delete a loaded row through the unit of work, so its id can be reused."""
        await self.session.delete(instance)
        await self.session.flush()

    # ── Organizations ──
    async def get_organization_by_auth0_id(self, auth0_id: str) -> Optional[OrganizationModel]:
        result = await self.session.execute(
            select(OrganizationModel).where(OrganizationModel.auth0_id == auth0_id)
        )
        return result.scalar_one_or_none()

    async def upsert_organization(self, auth0_id: str, name: str) -> OrganizationModel:
        """Create the organization or rename the existing one (keyed by auth0_id)."""
        organization = await self.get_organization_by_auth0_id(auth0_id)
        if organization is None:
            organization = OrganizationModel(auth0_id=auth0_id, name=name)
            self.session.add(organization)
        else:
            organization.name = name
        await self.session.flush()
        return organization

    async def list_organizations(self) -> list[OrganizationModel]:
        result = await self.session.execute(select(OrganizationModel))
        return list(result.scalars().all())

    # ── Users ──
    async def get_user(self, user_id: str) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def get_user_by_auth0_id(self, auth0_id: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.auth0_id == auth0_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        )
        return result.scalars().first()

    async def upsert_user(
        self,
        auth0_id: str,
        email: str,
        organization_id: str,
        name: Optional[str] = None,
    ) -> UserModel:
        """Create or overwrite a user keyed by auth0_id (last writer wins)."""
        user = await self.get_user_by_auth0_id(auth0_id)
        if user is None:
            user = UserModel(
                auth0_id=auth0_id,
                email=email,
                name=name or email,
                organization_id=organization_id,
            )
            self.session.add(user)
        else:
            user.email = email
            user.name = name or user.name or email
            user.organization_id = organization_id
        await self.session.flush()
        return user

    async def set_default_chatflow(self, user: UserModel, chatflow_id: Optional[str]) -> UserModel:
        user.default_chatflow_id = chatflow_id
        await self.session.flush()
        return user

    # ── Credentials ──
    async def list_user_credentials(self, user_id: str) -> list[CredentialModel]:
        """All credentials owned by *user_id*, oldest first."""
        result = await self.session.execute(
            select(CredentialModel)
            .where(CredentialModel.user_id == user_id)
            .order_by(CredentialModel.created_at, CredentialModel.id)
        )
        return list(result.scalars().all())

    async def find_orphaned_credential(self, credential_name: str, name: str) -> Optional[CredentialModel]:
        """Ownerless credential by (type, display name)."""
        result = await self.session.execute(
            select(CredentialModel).where(
                CredentialModel.credential_name == credential_name,
                CredentialModel.name == name,
                CredentialModel.user_id.is_(None),
                CredentialModel.organization_id.is_(None),
            )
        )
        return result.scalars().first()

    async def list_orphaned_credentials(self) -> list[CredentialModel]:
        result = await self.session.execute(
            select(CredentialModel).where(CredentialModel.user_id.is_(None))
        )
        return list(result.scalars().all())

    async def save_credential(self, credential: CredentialModel) -> CredentialModel:
        self.session.add(credential)
        await self.session.flush()
        return credential

    async def delete_credentials(self, credential_ids: Iterable[str]) -> int:
        ids = list(credential_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(CredentialModel).where(CredentialModel.id.in_(ids))
        )
        return result.rowcount or 0

    # ── Chatflows ──
    async def get_chatflow(self, chatflow_id: str) -> Optional[ChatflowModel]:
        result = await self.session.execute(
            select(ChatflowModel).where(ChatflowModel.id == chatflow_id)
        )
        return result.scalar_one_or_none()

    async def list_user_chatflows(self, user_id: str) -> list[ChatflowModel]:
        result = await self.session.execute(
            select(ChatflowModel).where(ChatflowModel.user_id == user_id)
        )
        return list(result.scalars().all())

    async def save_chatflow(self, chatflow: ChatflowModel) -> ChatflowModel:
        self.session.add(chatflow)
        await self.session.flush()
        return chatflow

    async def delete_chatflow(self, chatflow_id: str) -> int:
        result = await self.session.execute(
            delete(ChatflowModel).where(ChatflowModel.id == chatflow_id)
        )
        return result.rowcount or 0

    async def delete_user_chatflows(self, user_id: str) -> int:
        result = await self.session.execute(
            delete(ChatflowModel).where(ChatflowModel.user_id == user_id)
        )
        return result.rowcount or 0
