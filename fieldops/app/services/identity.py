"""
Identity sync service.

Users are owned by the external identity provider and mirrored here the
first time they are seen, either through the provider's webhook or through
onboarding when the webhook has not arrived yet.
"""

import logging
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fieldops.app.core.exceptions import ValidationError
from fieldops.app.models.enums import UserRole
from fieldops.app.models.user import User
from fieldops.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)

SYNC_EVENT_TYPES = frozenset({"user.created", "user.updated"})


class IdentityService:

    @staticmethod
    async def get_by_external_id(db: AsyncSession, external_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.external_id == external_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def create_or_update(
        db: AsyncSession,
        external_id: str,
        email: str,
        name: str,
        role: UserRole
    ) -> User:
        """
        Mirror an identity-provider user.

        Idempotent on external_id. An existing user only gets email and name
        refreshed; the role chosen at sign-up never changes here.
        """
        user = await IdentityService.get_by_external_id(db, external_id)

        if user:
            user.email = email
            user.name = name
            created = False
        else:
            user = User(
                external_id=external_id,
                email=email,
                name=name,
                role=UserRole(role),
                onboarding_complete=False
            )
            db.add(user)
            created = True

        await db.flush()
        await log_event(
            db,
            action=AuditAction.USER_SYNCED,
            actor_external_id=external_id,
            target_type="user",
            target_id=user.id,
            metadata={"created": created, "role": user.role.value},
            commit=False
        )
        await db.commit()
        await db.refresh(user)

        logger.info("User %s synced (created=%s)", external_id, created)
        return user

    @staticmethod
    async def complete_client_onboarding(
        db: AsyncSession,
        external_id: str,
        company_name: str,
        phone: str
    ) -> User:
        """Record company details; creates the client if the webhook is late."""
        user = await IdentityService.get_by_external_id(db, external_id)

        if not user:
            user = User(
                external_id=external_id,
                email="",
                name=company_name,
                role=UserRole.CLIENT
            )
            db.add(user)

        user.company_name = company_name
        user.phone = phone
        user.onboarding_complete = True

        return await IdentityService._finish_onboarding(db, user)

    @staticmethod
    async def complete_agent_onboarding(db: AsyncSession, external_id: str, phone: str) -> User:
        """Record the agent's phone; creates the agent if the webhook is late."""
        user = await IdentityService.get_by_external_id(db, external_id)

        if not user:
            user = User(
                external_id=external_id,
                email="",
                name="",
                role=UserRole.AGENT
            )
            db.add(user)

        user.phone = phone
        user.onboarding_complete = True

        return await IdentityService._finish_onboarding(db, user)

    @staticmethod
    async def _finish_onboarding(db: AsyncSession, user: User) -> User:
        await db.flush()
        await log_event(
            db,
            action=AuditAction.ONBOARDING_COMPLETED,
            actor_id=user.id,
            actor_external_id=user.external_id,
            target_type="user",
            target_id=user.id,
            metadata={"role": user.role.value},
            commit=False
        )
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        role: Optional[UserRole] = None,
        onboarding_complete: Optional[bool] = None
    ) -> list[User]:
        query = select(User)
        if role is not None:
            query = query.where(User.role == UserRole(role))
        if onboarding_complete is not None:
            query = query.where(User.onboarding_complete == onboarding_complete)
        result = await db.execute(query.order_by(User.id))
        return list(result.scalars().all())

    @staticmethod
    async def list_agents(db: AsyncSession) -> list[User]:
        return await IdentityService.list_users(db, role=UserRole.AGENT)

    @staticmethod
    async def list_available_agents(db: AsyncSession) -> list[User]:
        """Agents that finished onboarding and can be assigned."""
        return await IdentityService.list_users(db, role=UserRole.AGENT, onboarding_complete=True)

    @staticmethod
    async def list_pending_agents(db: AsyncSession) -> list[User]:
        return await IdentityService.list_users(db, role=UserRole.AGENT, onboarding_complete=False)

    @staticmethod
    async def list_clients(db: AsyncSession) -> list[User]:
        return await IdentityService.list_users(db, role=UserRole.CLIENT)


def parse_webhook_user(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Extract (external_id, email, name, role) from an identity webhook body.

    Returns:
        Keyword arguments for `create_or_update`, or None for event types
        that do not describe a user.

    Raises:
        ValidationError: user id missing or role not recognised
    """
    if payload.get("type") not in SYNC_EVENT_TYPES:
        return None

    data = payload.get("data") or {}
    external_id = data.get("id")
    if not external_id:
        raise ValidationError("Webhook user id is missing", field="data.id")

    addresses = data.get("email_addresses") or []
    email = (addresses[0].get("email_address") if addresses else None) or ""

    name = " ".join(part for part in (data.get("first_name"), data.get("last_name")) if part)

    role_claim = (data.get("unsafe_metadata") or {}).get("role") or UserRole.CLIENT.value
    try:
        role = UserRole(role_claim)
    except ValueError:
        raise ValidationError(f"Unknown role '{role_claim}'", field="unsafe_metadata.role")

    return {
        "external_id": external_id,
        "email": email,
        "name": name or "Unknown",
        "role": role,
    }
