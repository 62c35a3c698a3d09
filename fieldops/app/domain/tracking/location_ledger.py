"""
Location Ledger.

Append-only store of agent position samples per mission. Writes are only
accepted while the owning mission is in an active status.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fieldops.app.core.exceptions import NotFoundError, InvalidStateError, ValidationError
from fieldops.app.domain.missions.state_machine import is_active_status
from fieldops.app.models.location_log import LocationLog
from fieldops.app.models.mission import Mission
from fieldops.app.services.position_cache import cache_latest_position

logger = logging.getLogger(__name__)


class LocationLedger:

    @staticmethod
    async def record(
        db: AsyncSession,
        mission_id: int,
        agent_id: int,
        lat: float,
        lng: float,
        redis=None
    ) -> LocationLog:
        """
        Append a position sample.

        The timestamp is assigned here, never taken from the device.

        Raises:
            NotFoundError: mission does not exist
            InvalidStateError: mission is Scheduled, Complete or Cancelled
            ValidationError: coordinates out of range
        """
        if not -90 <= lat <= 90:
            raise ValidationError("Latitude must be between -90 and 90", field="lat")
        if not -180 <= lng <= 180:
            raise ValidationError("Longitude must be between -180 and 180", field="lng")

        mission = await db.get(Mission, mission_id)
        if not mission:
            raise NotFoundError("Mission", mission_id)

        if not is_active_status(mission.status):
            logger.warning(
                "Rejected location for mission %s in status %s",
                mission_id, mission.status.value
            )
            raise InvalidStateError(
                "Cannot log location for non-active mission",
                current_state=mission.status.value
            )

        location_log = LocationLog(
            mission_id=mission_id,
            agent_id=agent_id,
            lat=lat,
            lng=lng,
            timestamp=datetime.now(timezone.utc)
        )

        db.add(location_log)
        await db.commit()
        await db.refresh(location_log)

        await cache_latest_position(redis, location_log)

        return location_log

    @staticmethod
    async def latest(db: AsyncSession, mission_id: int) -> Optional[LocationLog]:
        """Newest sample of a mission, or None if none was recorded yet."""
        result = await db.execute(
            select(LocationLog)
            .where(LocationLog.mission_id == mission_id)
            .order_by(LocationLog.timestamp.desc(), LocationLog.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def history(db: AsyncSession, mission_id: int) -> list[LocationLog]:
        """Full breadcrumb trail of a mission, oldest first."""
        result = await db.execute(
            select(LocationLog)
            .where(LocationLog.mission_id == mission_id)
            .order_by(LocationLog.timestamp.asc(), LocationLog.id.asc())
        )
        return list(result.scalars().all())
