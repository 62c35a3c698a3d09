"""
Mission Event Log.

Append-only audit trail per mission. Status change records are written
inside the caller's transaction so they commit together with the status
patch; photo and note records commit on their own.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fieldops.app.models.mission_event import MissionEvent
from fieldops.app.models.enums import MissionEventType, MissionStatus
from fieldops.app.services.storage import StorageProvider


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MissionEventLog:

    @staticmethod
    async def record_status_change(
        db: AsyncSession,
        mission_id: int,
        agent_id: int,
        previous_status: MissionStatus,
        new_status: MissionStatus,
        timestamp: Optional[datetime] = None
    ) -> MissionEvent:
        """
        Stage a StatusChange event in the current transaction.

        Does not commit: the caller commits it together with the mission
        patch.
        """
        event = MissionEvent(
            mission_id=mission_id,
            agent_id=agent_id,
            event_type=MissionEventType.STATUS_CHANGE,
            previous_status=MissionStatus(previous_status).value,
            new_status=MissionStatus(new_status).value,
            timestamp=timestamp or utcnow()
        )
        db.add(event)
        await db.flush()
        return event

    @staticmethod
    async def record_photo(
        db: AsyncSession,
        mission_id: int,
        agent_id: int,
        storage_id: str,
        note: Optional[str] = None
    ) -> MissionEvent:
        """Append a PhotoUploaded event carrying an opaque storage reference."""
        event = MissionEvent(
            mission_id=mission_id,
            agent_id=agent_id,
            event_type=MissionEventType.PHOTO_UPLOADED,
            photo_storage_id=storage_id,
            note=note,
            timestamp=utcnow()
        )
        db.add(event)
        await db.commit()
        await db.refresh(event)
        return event

    @staticmethod
    async def record_note(
        db: AsyncSession,
        mission_id: int,
        agent_id: int,
        note: str
    ) -> MissionEvent:
        """Append a free-text Note event."""
        event = MissionEvent(
            mission_id=mission_id,
            agent_id=agent_id,
            event_type=MissionEventType.NOTE,
            note=note,
            timestamp=utcnow()
        )
        db.add(event)
        await db.commit()
        await db.refresh(event)
        return event

    @staticmethod
    async def list_by_mission(db: AsyncSession, mission_id: int) -> list[MissionEvent]:
        """All events of a mission, oldest first; ties keep insertion order."""
        result = await db.execute(
            select(MissionEvent)
            .where(MissionEvent.mission_id == mission_id)
            .order_by(MissionEvent.timestamp.asc(), MissionEvent.id.asc())
        )
        return list(result.scalars().all())


def resolve_photo_url(event: MissionEvent, storage: StorageProvider) -> Optional[str]:
    """Fetchable URL for a photo event, None for other events or dangling references."""
    if not event.photo_storage_id:
        return None
    return storage.resolve_url(event.photo_storage_id)
