"""
Mission Event database model.

Append-only audit trail of status changes, photos and notes per mission.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum
from fieldops.app.db.session import Base
from fieldops.app.models.enums import MissionEventType


class MissionEvent(Base):
    """
    Mission Event model.

    Rows are never updated or deleted. Ordering within a mission is
    (timestamp, id).
    """
    __tablename__ = "mission_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    mission_id = Column(Integer, ForeignKey('missions.id', ondelete="CASCADE"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey('users.id'), nullable=False)  # Actor

    event_type = Column(
        Enum(MissionEventType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )

    # StatusChange payload
    previous_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=True)

    # PhotoUploaded payload (opaque storage reference)
    photo_storage_id = Column(String(255), nullable=True)

    # Note payload (also optional caption for photos)
    note = Column(Text, nullable=True)

    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<MissionEvent(id={self.id}, mission_id={self.mission_id}, type='{self.event_type.value}')>"
