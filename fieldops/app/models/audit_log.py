"""
Audit Log Database Model.

Tracks admin and identity actions that are not part of a mission's own
event trail (rate card edits, assignments, overrides, user sync).
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from fieldops.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - RATE_CARD_CREATED / RATE_CARD_UPDATED / RATE_CARD_DELETED / RATE_CARDS_SEEDED
    - AGENT_ASSIGNED / MISSION_STATUS_OVERRIDDEN
    - USER_SYNCED / ONBOARDING_COMPLETED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for identity-provider webhooks)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_external_id = Column(String(255), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What it was performed on
    target_type = Column(String(50), nullable=True)
    target_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', target={self.target_type}:{self.target_id})>"
