"""
Audit logging service for admin and identity actions.

Mission lifecycle events go to the mission event log instead; this trail
covers the administrative side.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from fieldops.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    USER_SYNCED = "USER_SYNCED"
    ONBOARDING_COMPLETED = "ONBOARDING_COMPLETED"

    AGENT_ASSIGNED = "AGENT_ASSIGNED"
    MISSION_STATUS_OVERRIDDEN = "MISSION_STATUS_OVERRIDDEN"

    RATE_CARD_CREATED = "RATE_CARD_CREATED"
    RATE_CARD_UPDATED = "RATE_CARD_UPDATED"
    RATE_CARD_DELETED = "RATE_CARD_DELETED"
    RATE_CARDS_SEEDED = "RATE_CARDS_SEEDED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_external_id: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True
) -> AuditLog:
    """
    Log an admin or identity event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_external_id: Identity-provider subject of the actor
        target_type: Kind of record acted upon ("mission", "rate_card", "user")
        target_id: ID of the record acted upon
        metadata: Additional context as JSON
        commit: Commit immediately; pass False to join the caller's transaction

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_external_id=actor_external_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        meta_data=metadata
    )

    db.add(audit_log)
    if commit:
        await db.commit()
        await db.refresh(audit_log)
    else:
        await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_type:
        query = query.where(AuditLog.target_type == target_type)

    if target_id:
        query = query.where(AuditLog.target_id == target_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
