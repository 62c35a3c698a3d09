"""
Security guards for role-based and tenancy-based access control.

Provides dependencies for protecting endpoints and an explicit mission
access check applied at every mission read and write.
"""

from typing import List, Optional
from fastapi import Depends, HTTPException, status
from fieldops.app.core.exceptions import InsufficientPermissionsError
from fieldops.app.models.enums import UserRole
from fieldops.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/admin/agents")
        async def list_agents(current_user: dict = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for admin-only endpoints.

    Returns:
        User payload if admin, raises 403 otherwise
    """
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return current_user


def can_access_mission(mission, current_user: dict) -> bool:
    """
    Check whether the caller may see a mission.

    Admins see everything, clients see the missions they own and agents see
    the missions assigned to them.
    """
    user_role = current_user.get("role")
    user_id = current_user.get("user_id")

    if user_role == UserRole.ADMIN.value:
        return True

    if user_role == UserRole.CLIENT.value:
        return mission.client_id == user_id

    if user_role == UserRole.AGENT.value:
        return mission.agent_id is not None and mission.agent_id == user_id

    return False


class MissionAccessGuard:
    """
    Explicit tenancy check for mission records.

    Usage:
        mission_guard = MissionAccessGuard()

        mission = await service.get_mission(mission_id)
        mission_guard.enforce(mission, current_user)
    """

    def enforce(self, mission, current_user: dict, action: str = "access"):
        """
        Raise if the caller may not touch this mission.

        Raises:
            InsufficientPermissionsError (403)
        """
        if not can_access_mission(mission, current_user):
            raise InsufficientPermissionsError(
                message=f"Access denied. You do not have permission to {action} this mission.",
                details={"mission_id": mission.id}
            )

    def enforce_agent(self, mission, current_user: dict, action: str = "update"):
        """Agents may only act on missions assigned to them; admins may act on any."""
        if current_user.get("role") == UserRole.ADMIN.value:
            return
        if mission.agent_id is None or mission.agent_id != current_user.get("user_id"):
            raise InsufficientPermissionsError(
                message=f"This mission is not assigned to you, cannot {action} it.",
                details={"mission_id": mission.id}
            )

    def filter_by_tenant(self, current_user: dict) -> tuple[Optional[str], Optional[int]]:
        """
        Get the (column, value) to scope mission listings by.

        For admins: (None, None), no filtering
        For clients: ("client_id", user_id)
        For agents: ("agent_id", user_id)
        """
        user_role = current_user.get("role")
        user_id = current_user.get("user_id")

        if user_role == UserRole.ADMIN.value:
            return None, None

        if user_role == UserRole.CLIENT.value:
            return "client_id", user_id

        return "agent_id", user_id
