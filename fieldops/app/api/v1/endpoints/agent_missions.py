"""
Agent Mission Execution API Endpoints.

Agents work through their assigned missions from the mobile device: advance
the status, stream location samples, upload photos and leave notes.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Body, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.app.db.session import get_db
from fieldops.app.core.exceptions import ValidationError
from fieldops.app.core.guards import require_role, MissionAccessGuard
from fieldops.app.core.redis_client import get_redis
from fieldops.app.domain.missions.event_log import MissionEventLog, resolve_photo_url
from fieldops.app.domain.missions.mission_service import MissionService
from fieldops.app.domain.tracking.location_ledger import LocationLedger
from fieldops.app.models.enums import UserRole
from fieldops.app.schemas.location import LocationCreate, LocationResponse
from fieldops.app.schemas.mission import MissionResponse, AdvanceRequest
from fieldops.app.schemas.mission_event import MissionEventResponse, PhotoCreate, NoteCreate
from fieldops.app.services.storage import StorageProvider, get_storage
from fieldops.app.api.v1.endpoints.missions import mission_response

router = APIRouter(prefix="/agent", tags=["Agent - Mission Execution"])
mission_guard = MissionAccessGuard()


@router.get("/missions", response_model=List[MissionResponse])
async def list_assigned_missions(
    current_user: dict = Depends(require_role([UserRole.AGENT])),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """Missions assigned to the calling agent, newest first."""
    missions = await MissionService.list_missions(db, agent_id=current_user["user_id"])
    return [mission_response(mission, storage) for mission in missions]


@router.post("/missions/{mission_id}/advance", response_model=MissionResponse)
async def advance_mission(
    mission_id: int = Path(..., description="Mission ID"),
    advance_data: Optional[AdvanceRequest] = Body(None),
    current_user: dict = Depends(require_role([UserRole.AGENT])),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """
    Move the mission to the next status of its flow (Agent only).

    Validates:
    - Mission is assigned to the caller
    - Mission is not Complete or Cancelled (409)
    - expected_version, when given, still matches (409)
    """
    mission = await MissionService.get_mission(db, mission_id)
    mission_guard.enforce_agent(mission, current_user, "advance")

    mission = await MissionService.advance(
        db,
        mission_id,
        acting_agent_id=current_user["user_id"],
        expected_version=advance_data.expected_version if advance_data else None
    )
    return mission_response(mission, storage)


@router.post("/missions/{mission_id}/location", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def record_location(
    location: LocationCreate,
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(require_role([UserRole.AGENT])),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Append a GPS sample (Agent only).

    Rejected with 409 unless the mission is in an active status.
    """
    mission = await MissionService.get_mission(db, mission_id)
    mission_guard.enforce_agent(mission, current_user, "track")

    return await LocationLedger.record(
        db,
        mission_id=mission_id,
        agent_id=current_user["user_id"],
        lat=location.lat,
        lng=location.lng,
        redis=redis
    )


@router.post("/missions/{mission_id}/photos", response_model=MissionEventResponse, status_code=status.HTTP_201_CREATED)
async def record_photo(
    photo: PhotoCreate,
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(require_role([UserRole.AGENT, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """Record an uploaded photo as a PhotoUploaded event (assigned agent or Admin)."""
    mission = await MissionService.get_mission(db, mission_id)
    mission_guard.enforce_agent(mission, current_user, "upload photos to")

    if storage.resolve_url(photo.storage_id) is None:
        raise ValidationError("Uploaded file not found", field="storage_id")

    event = await MissionEventLog.record_photo(
        db,
        mission_id=mission_id,
        agent_id=current_user["user_id"],
        storage_id=photo.storage_id,
        note=photo.note
    )
    response = MissionEventResponse.model_validate(event)
    response.photo_url = resolve_photo_url(event, storage)
    return response


@router.post("/missions/{mission_id}/notes", response_model=MissionEventResponse, status_code=status.HTTP_201_CREATED)
async def record_note(
    note_data: NoteCreate,
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(require_role([UserRole.AGENT, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    mission = await MissionService.get_mission(db, mission_id)
    mission_guard.enforce_agent(mission, current_user, "add notes to")

    return await MissionEventLog.record_note(
        db,
        mission_id=mission_id,
        agent_id=current_user["user_id"],
        note=note_data.note
    )
