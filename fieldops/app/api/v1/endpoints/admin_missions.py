"""
Admin Mission Operations API Endpoints.

Status overrides and agent assignment. Both are audited.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.app.db.session import get_db
from fieldops.app.core.guards import require_admin
from fieldops.app.domain.missions.mission_service import MissionService
from fieldops.app.schemas.mission import MissionResponse, StatusOverrideRequest, AssignAgentRequest
from fieldops.app.services.audit import log_event, AuditAction
from fieldops.app.services.storage import StorageProvider, get_storage
from fieldops.app.api.v1.endpoints.missions import mission_response

router = APIRouter(prefix="/admin/missions", tags=["Admin - Missions"])


@router.patch("/{mission_id}/status", response_model=MissionResponse)
async def override_status(
    override: StatusOverrideRequest,
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """
    Set any status, including Cancelled (Admin only).

    No flow validation; the change is still written to the mission's event log.
    """
    mission = await MissionService.get_mission(db, mission_id)
    previous_status = mission.status.value

    mission = await MissionService.set_status(
        db,
        mission_id,
        override.status,
        acting_user_id=current_user["user_id"],
        expected_version=override.expected_version
    )

    await log_event(
        db=db,
        action=AuditAction.MISSION_STATUS_OVERRIDDEN,
        actor_id=current_user["user_id"],
        actor_external_id=current_user["sub"],
        target_type="mission",
        target_id=mission.id,
        metadata={"previous_status": previous_status, "new_status": mission.status.value}
    )

    return mission_response(mission, storage)


@router.patch("/{mission_id}/assign-agent", response_model=MissionResponse)
async def assign_agent(
    assignment: AssignAgentRequest,
    mission_id: int = Path(..., description="Mission ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage)
):
    """Bind or rebind an agent to a mission (Admin only)."""
    mission = await MissionService.get_mission(db, mission_id)
    previous_agent_id = mission.agent_id

    mission = await MissionService.assign_agent(
        db,
        mission_id,
        assignment.agent_id,
        expected_version=assignment.expected_version
    )

    await log_event(
        db=db,
        action=AuditAction.AGENT_ASSIGNED,
        actor_id=current_user["user_id"],
        actor_external_id=current_user["sub"],
        target_type="mission",
        target_id=mission.id,
        metadata={"previous_agent_id": previous_agent_id, "agent_id": mission.agent_id}
    )

    return mission_response(mission, storage)
