"""
Mission Service (Domain Logic).

Owns mission creation, status transitions and agent assignment.
Every status write commits together with its StatusChange event: either
both are visible or neither is.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from fieldops.app.core.exceptions import NotFoundError, ValidationError, ConflictError
from fieldops.app.domain.missions.event_log import MissionEventLog
from fieldops.app.domain.missions.state_machine import next_status, ACTIVE_STATUSES
from fieldops.app.domain.pricing.calculator import PricingCalculator
from fieldops.app.domain.tracking.location_ledger import LocationLedger
from fieldops.app.models.enums import MissionStatus, LocationType, ServiceType, UserRole
from fieldops.app.models.mission import Mission
from fieldops.app.models.user import User

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("passenger_name", "pickup_location", "scheduled_at", "service_type")

OPTIONAL_FIELDS = (
    "passenger_phone", "passenger_email", "passenger_count",
    "group_leader_name", "group_leader_phone", "group_leader_email",
    "flight_number", "train_number", "ship_name",
    "dropoff_location", "location_type", "notes",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class MissionService:

    @staticmethod
    async def create_mission(
        db: AsyncSession,
        client_id: int,
        data: Dict[str, Any],
        quote: bool = False,
        distance_km: Optional[float] = None
    ) -> Mission:
        """
        Create a mission in status Scheduled, without an agent.

        Args:
            db: Database session
            client_id: Owning client (immutable afterwards)
            data: Passenger, schedule, location and service fields
            quote: Price the mission with the rate card engine
            distance_km: Distance used for per-km pricing when quoting

        Raises:
            ValidationError: passenger name, pickup location, scheduled time
                or service type missing
            NotFoundError: client does not exist
        """
        for field_name in REQUIRED_FIELDS:
            if _is_blank(data.get(field_name)):
                raise ValidationError(f"{field_name} is required", field=field_name)

        passenger_count = data.get("passenger_count")
        if passenger_count is not None and passenger_count < 1:
            raise ValidationError("passenger_count must be at least 1", field="passenger_count")

        client = await db.get(User, client_id)
        if not client or client.role != UserRole.CLIENT:
            raise NotFoundError("Client", client_id)

        fields = {name: data[name] for name in REQUIRED_FIELDS}
        fields.update({name: data[name] for name in OPTIONAL_FIELDS if data.get(name) is not None})
        fields["service_type"] = ServiceType(fields["service_type"])
        fields["location_type"] = LocationType(fields.get("location_type", LocationType.AIRPORT))

        now = utcnow()
        mission = Mission(
            client_id=client_id,
            status=MissionStatus.SCHEDULED,
            attachments=[],
            created_at=now,
            updated_at=now,
            **fields
        )

        if quote:
            price_quote = await PricingCalculator.calculate_price(
                db,
                service_type=fields["service_type"],
                location_type=fields["location_type"],
                scheduled_at=fields["scheduled_at"],
                passenger_count=passenger_count,
                distance_km=distance_km,
                client_id=client_id
            )
            if price_quote.available:
                mission.quoted_price = price_quote.price
                mission.currency = price_quote.currency

        db.add(mission)
        await db.commit()
        await db.refresh(mission)

        logger.info("Mission %s created for client %s", mission.id, client_id)
        return mission

    @staticmethod
    async def get_mission(db: AsyncSession, mission_id: int) -> Mission:
        """
        Raises:
            NotFoundError: mission does not exist
        """
        mission = await db.get(Mission, mission_id)
        if not mission:
            raise NotFoundError("Mission", mission_id)
        return mission

    @staticmethod
    async def list_missions(
        db: AsyncSession,
        client_id: Optional[int] = None,
        agent_id: Optional[int] = None,
        status: Optional[MissionStatus] = None
    ) -> list[Mission]:
        """Missions newest first, optionally scoped to a client or an agent."""
        query = select(Mission)

        if client_id is not None:
            query = query.where(Mission.client_id == client_id)
        if agent_id is not None:
            query = query.where(Mission.agent_id == agent_id)
        if status is not None:
            query = query.where(Mission.status == MissionStatus(status))

        query = query.order_by(Mission.created_at.desc(), Mission.id.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def list_active_missions(db: AsyncSession, client_id: Optional[int] = None) -> list[tuple]:
        """
        Active missions with their latest position, for the live map.

        Returns:
            List of (Mission, LocationLog | None)
        """
        query = select(Mission).where(Mission.status.in_(list(ACTIVE_STATUSES)))
        if client_id is not None:
            query = query.where(Mission.client_id == client_id)
        query = query.order_by(Mission.scheduled_at.asc(), Mission.id.asc())

        result = await db.execute(query)
        missions = result.scalars().all()

        return [
            (mission, await LocationLedger.latest(db, mission.id))
            for mission in missions
        ]

    @staticmethod
    async def advance(
        db: AsyncSession,
        mission_id: int,
        acting_agent_id: int,
        expected_version: Optional[int] = None
    ) -> Mission:
        """
        Move a mission to the next status of its flow.

        Raises:
            NotFoundError: mission does not exist
            InvalidTransitionError: mission is Complete or Cancelled
            ConflictError: expected_version does not match
        """
        mission = await MissionService.get_mission(db, mission_id)
        target = next_status(mission.status, mission.location_type)
        return await MissionService._apply_status(db, mission, target, acting_agent_id, expected_version)

    @staticmethod
    async def set_status(
        db: AsyncSession,
        mission_id: int,
        new_status: MissionStatus,
        acting_user_id: int,
        expected_version: Optional[int] = None
    ) -> Mission:
        """
        Administrative override: move to any status, including Cancelled.

        No ordinal validation; same atomicity as `advance`.
        """
        mission = await MissionService.get_mission(db, mission_id)
        return await MissionService._apply_status(
            db, mission, MissionStatus(new_status), acting_user_id, expected_version
        )

    @staticmethod
    async def assign_agent(
        db: AsyncSession,
        mission_id: int,
        agent_id: int,
        expected_version: Optional[int] = None
    ) -> Mission:
        """
        Bind or rebind an agent. Allowed in any status; re-assigning the same
        agent is harmless.

        Raises:
            NotFoundError: mission or agent does not exist
            ValidationError: user is not an agent
            ConflictError: expected_version does not match
        """
        mission = await MissionService.get_mission(db, mission_id)

        agent = await db.get(User, agent_id)
        if not agent:
            raise NotFoundError("Agent", agent_id)
        if agent.role != UserRole.AGENT:
            raise ValidationError("User is not an agent", field="agent_id")

        _check_version(mission, expected_version)

        mission.agent_id = agent_id
        mission.updated_at = utcnow()
        await _commit_mission(db, mission)

        logger.info("Agent %s assigned to mission %s", agent_id, mission.id)
        return mission

    @staticmethod
    async def add_attachment(
        db: AsyncSession,
        mission_id: int,
        storage_id: str,
        file_name: str,
        file_type: str
    ) -> Mission:
        """Append a document reference to the mission's ordered attachments."""
        mission = await MissionService.get_mission(db, mission_id)

        now = utcnow()
        # Reassign so the JSON column is flagged dirty
        mission.attachments = list(mission.attachments or []) + [{
            "storage_id": storage_id,
            "file_name": file_name,
            "file_type": file_type,
            "uploaded_at": now.isoformat(),
        }]
        mission.updated_at = now
        await _commit_mission(db, mission)
        return mission

    @staticmethod
    async def _apply_status(
        db: AsyncSession,
        mission: Mission,
        target: MissionStatus,
        actor_id: int,
        expected_version: Optional[int]
    ) -> Mission:
        _check_version(mission, expected_version)

        previous = mission.status
        read_version = mission.version
        now = utcnow()

        mission.status = target
        mission.updated_at = now

        try:
            await MissionEventLog.record_status_change(
                db,
                mission_id=mission.id,
                agent_id=actor_id,
                previous_status=previous,
                new_status=target,
                timestamp=now
            )
        except StaleDataError:
            await db.rollback()
            raise ConflictError("Mission", read_version, None)
        except Exception:
            await db.rollback()
            raise

        await _commit_mission(db, mission)

        logger.info(
            "Mission %s status %s -> %s by user %s",
            mission.id, previous.value, target.value, actor_id
        )
        return mission


def _check_version(mission: Mission, expected_version: Optional[int]) -> None:
    if expected_version is not None and expected_version != mission.version:
        raise ConflictError("Mission", expected_version, mission.version)


async def _commit_mission(db: AsyncSession, mission: Mission) -> None:
    """Commit, turning a concurrent UPDATE detected by the version column into ConflictError."""
    read_version = mission.version
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise ConflictError("Mission", read_version, None)
    except Exception:
        await db.rollback()
        raise
