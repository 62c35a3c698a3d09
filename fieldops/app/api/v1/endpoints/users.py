"""
User and Identity API Endpoints.

The identity provider's webhook mirrors users into the database; onboarding
completes their profile; admins list clients and agents.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.app.db.session import get_db
from fieldops.app.core.dependencies import get_current_user, get_token_subject
from fieldops.app.core.exceptions import NotFoundError
from fieldops.app.core.guards import require_admin
from fieldops.app.schemas.audit import AuditLogResponse
from fieldops.app.schemas.user import UserResponse, ClientOnboarding, AgentOnboarding, WebhookAck
from fieldops.app.services.audit import get_audit_trail
from fieldops.app.services.identity import IdentityService, parse_webhook_user

identity_router = APIRouter(prefix="/identity", tags=["Identity"])
router = APIRouter(prefix="/users", tags=["Users"])
admin_router = APIRouter(prefix="/admin", tags=["Admin - Users"])

# Delivery headers the identity provider attaches to every webhook call
WEBHOOK_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


@identity_router.post("/webhook", response_model=WebhookAck)
async def identity_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Receive user.created / user.updated events.

    Other event types are acknowledged and ignored.
    """
    if any(not request.headers.get(header) for header in WEBHOOK_HEADERS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing webhook delivery headers"
        )

    payload = await request.json()
    user_fields = parse_webhook_user(payload)
    if user_fields is None:
        return WebhookAck(message="Webhook received")

    user = await IdentityService.create_or_update(db, **user_fields)
    return WebhookAck(message="User synced successfully", user_id=user.id)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await IdentityService.get_by_external_id(db, current_user["sub"])
    if not user:
        raise NotFoundError("User")
    return user


@router.post("/onboarding/client", response_model=UserResponse)
async def complete_client_onboarding(
    onboarding: ClientOnboarding,
    external_id: str = Depends(get_token_subject),
    db: AsyncSession = Depends(get_db)
):
    return await IdentityService.complete_client_onboarding(
        db, external_id, onboarding.company_name, onboarding.phone
    )


@router.post("/onboarding/agent", response_model=UserResponse)
async def complete_agent_onboarding(
    onboarding: AgentOnboarding,
    external_id: str = Depends(get_token_subject),
    db: AsyncSession = Depends(get_db)
):
    return await IdentityService.complete_agent_onboarding(db, external_id, onboarding.phone)


@admin_router.get("/users", response_model=List[UserResponse])
async def list_users(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await IdentityService.list_users(db)


@admin_router.get("/users/clients", response_model=List[UserResponse])
async def list_clients(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await IdentityService.list_clients(db)


@admin_router.get("/agents", response_model=List[UserResponse])
async def list_agents(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await IdentityService.list_agents(db)


@admin_router.get("/agents/available", response_model=List[UserResponse])
async def list_available_agents(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Onboarded agents that can be assigned to missions."""
    return await IdentityService.list_available_agents(db)


@admin_router.get("/agents/pending", response_model=List[UserResponse])
async def list_pending_agents(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await IdentityService.list_pending_agents(db)


@admin_router.get("/audit-logs", response_model=List[AuditLogResponse])
async def list_audit_logs(
    target_type: Optional[str] = Query(None),
    target_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Administrative audit trail, most recent first."""
    return await get_audit_trail(db, target_type=target_type, target_id=target_id, action=action, limit=limit)
