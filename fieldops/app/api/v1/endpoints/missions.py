"""
Mission API Endpoints.

Clients create and follow their missions; admins see every mission. Every
read is checked against the caller's tenancy before anything is returned.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.app.db.session import get_db
from fieldops.app.core.dependencies import get_current_user
from fieldops.app.core.exceptions import ValidationError, InsufficientPermissionsError
from fieldops.app.core.guards import require_role, MissionAccessGuard
from fieldops.app.core.redis_client import get_redis
from fieldops.app.domain.missions.event_log import MissionEventLog, resolve_photo_url
from fieldops.app.domain.missions.mission_service import MissionService
from fieldops.app.domain.missions.state_machine import peek_next_status, action_label
from fieldops.app.domain.tracking.location_ledger import LocationLedger
from fieldops.app.models.enums import UserRole, MissionStatus
from fieldops.app.models.mission import Mission
from fieldops.app.schemas.location import LocationResponse
from fieldops.app.schemas.mission import (
    MissionCreate, MissionResponse, AttachmentCreate, ActiveMissionResponse, LatestPosition
)
from fieldops.app.schemas.mission_event import MissionEventResponse
from fieldops.app.services.position_cache import get_cached_position
from fieldops.app.services.storage import StorageProvider, get_storage

router = APIRouter(prefix="/missions", tags=["Missions"])
mission_guard = MissionAccessGuard()


def mission_response(mission: Mission, storage: StorageProvider) -> MissionResponse:
    """Serialize a mission with its next step and resolved attachment URLs."""
    response = MissionResponse.model_validate(mission)
    for attachment in response.attachments:
        attachment.url = storage.resolve_url(attachment.storage_id)
    response.next_status = peek_next_status(mission.status, mission.location_type)
    response.next_action_label = action_label(mission.status, mission.location_type)
    return response


async def load_visible_mission(db: AsyncSession, mission_id: int, current_user: dict, action: str = "view") -> Mission:
    mission = await MissionService.get_mission(db, mission_id)
    mission_guard.enforce(mission, current_user, action)
    return mission


@router.post("", response_model=MissionResponse, status_code=status.HTTP_201_CREATED)
async def create_mission(
    mission_data: MissionCreate,
    current_user: dict = Depends(require_role([UserRole.CLIENT, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """
    Create a mission (Client or Admin).

    Clients may only create missions for themselves. With `quote` set the
    mission is priced from the applicable rate card.
    """
    if current_user["role"] == UserRole.ADMIN.value:
        if mission_data.client_id is None:
            raise ValidationError("client_id is required", field="client_id")
        client_id = mission_data.client_id
    else:
        if mission_data.client_id not in (None, current_user["user_id"]):
            raise InsufficientPermissionsError("Clients can only create missions for themselves")
        client_id = current_user["user_id"]

    data = mission_data.model_dump(exclude={"client_id", "quote", "distance_km"})
    mission = await MissionService.create_mission(
        db,
        client_id=client_id,
        data=data,
        quote=mission_data.quote,
        distance_km=mission_data.distance_km
    )
    return mission_response(mission, storage)


@router.get("", response_model=List[MissionResponse])
async def list_missions(
    status_filter: Optional[MissionStatus] = Query(None, alias="status"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """List the caller's missions, newest first (all missions for admins)."""
    column, value = mission_guard.filter_by_tenant(current_user)
    scope = {column: value} if column else {}

    missions = await MissionService.list_missions(db, status=status_filter, **scope)
    return [mission_response(mission, storage) for mission in missions]


@router.get("/active", response_model=List[ActiveMissionResponse])
async def list_active_missions(
    current_user: dict = Depends(require_role([UserRole.CLIENT, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Live map feed: active missions with the last known agent position.
    """
    client_id = current_user["user_id"] if current_user["role"] == UserRole.CLIENT.value else None
    rows = await MissionService.list_active_missions(db, client_id=client_id)

    return [
        ActiveMissionResponse(
            id=mission.id,
            passenger_name=mission.passenger_name,
            status=mission.status,
            agent_id=mission.agent_id,
            location=LatestPosition(lat=latest.lat, lng=latest.lng, timestamp=latest.timestamp) if latest else None
        )
        for mission, latest in rows
    ]


@router.get("/{mission_id}", response_model=MissionResponse)
async def get_mission(
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    mission = await load_visible_mission(db, mission_id, current_user)
    return mission_response(mission, storage)


@router.get("/{mission_id}/events", response_model=List[MissionEventResponse])
async def list_mission_events(
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """Audit trail of a mission, oldest first, with photo URLs resolved."""
    await load_visible_mission(db, mission_id, current_user)

    events = await MissionEventLog.list_by_mission(db, mission_id)
    responses = []
    for event in events:
        response = MissionEventResponse.model_validate(event)
        response.photo_url = resolve_photo_url(event, storage)
        responses.append(response)
    return responses


@router.get("/{mission_id}/locations", response_model=List[LocationResponse])
async def list_mission_locations(
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Breadcrumb trail, oldest first."""
    await load_visible_mission(db, mission_id, current_user)
    return await LocationLedger.history(db, mission_id)


@router.get("/{mission_id}/locations/latest", response_model=Optional[LocationResponse])
async def get_latest_location(
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Newest position of a mission.

    Returns null when the mission exists but has no samples yet. Served from
    the Redis mirror when available, from the ledger otherwise.
    """
    await load_visible_mission(db, mission_id, current_user)

    cached = await get_cached_position(redis, mission_id)
    if cached:
        return LocationResponse(**cached)

    return await LocationLedger.latest(db, mission_id)


@router.post("/{mission_id}/attachments", response_model=MissionResponse, status_code=status.HTTP_201_CREATED)
async def add_attachment(
    attachment: AttachmentCreate,
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(require_role([UserRole.CLIENT, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """Attach an uploaded document (e.g. passenger list) to a mission."""
    await load_visible_mission(db, mission_id, current_user, "update")

    if storage.resolve_url(attachment.storage_id) is None:
        raise ValidationError("Uploaded file not found", field="storage_id")

    mission = await MissionService.add_attachment(
        db,
        mission_id,
        storage_id=attachment.storage_id,
        file_name=attachment.file_name,
        file_type=attachment.file_type
    )
    return mission_response(mission, storage)
