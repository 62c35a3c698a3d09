"""
Mission status state machine.

Pure status rules, no database access:
- ordinal position of every status
- the concrete flow for each location type
- which statuses are active (tracking allowed) and terminal
- the next status an agent may advance to
"""

from types import MappingProxyType
from typing import Optional

from fieldops.app.core.exceptions import InvalidTransitionError
from fieldops.app.models.enums import MissionStatus, LocationType


# Transport-mode synonyms share a position
STATUS_ORDINAL = MappingProxyType({
    MissionStatus.SCHEDULED: 0,
    MissionStatus.ACTIVE: 1,
    MissionStatus.ARRIVED_AT_AIRPORT: 2,
    MissionStatus.ARRIVED_AT_STATION: 2,
    MissionStatus.ARRIVED_AT_PORT: 2,
    MissionStatus.PASSENGER_MET: 3,
    MissionStatus.LUGGAGE_COLLECTED: 4,
    MissionStatus.IN_TRANSIT: 4,
    MissionStatus.COMPLETE: 5,
})

STATUS_FLOWS = MappingProxyType({
    LocationType.AIRPORT: (
        MissionStatus.SCHEDULED,
        MissionStatus.ACTIVE,
        MissionStatus.ARRIVED_AT_AIRPORT,
        MissionStatus.PASSENGER_MET,
        MissionStatus.LUGGAGE_COLLECTED,
        MissionStatus.COMPLETE,
    ),
    LocationType.TRAIN_STATION: (
        MissionStatus.SCHEDULED,
        MissionStatus.ACTIVE,
        MissionStatus.ARRIVED_AT_STATION,
        MissionStatus.PASSENGER_MET,
        MissionStatus.LUGGAGE_COLLECTED,
        MissionStatus.COMPLETE,
    ),
    LocationType.PORT: (
        MissionStatus.SCHEDULED,
        MissionStatus.ACTIVE,
        MissionStatus.ARRIVED_AT_PORT,
        MissionStatus.PASSENGER_MET,
        MissionStatus.LUGGAGE_COLLECTED,
        MissionStatus.COMPLETE,
    ),
    # Door-to-door transfer: no terminal to arrive at
    LocationType.ADDRESS: (
        MissionStatus.SCHEDULED,
        MissionStatus.ACTIVE,
        MissionStatus.PASSENGER_MET,
        MissionStatus.IN_TRANSIT,
        MissionStatus.COMPLETE,
    ),
})

TERMINAL_STATUSES = frozenset({MissionStatus.COMPLETE, MissionStatus.CANCELLED})

ACTIVE_STATUSES = frozenset(
    s for s in MissionStatus
    if s is not MissionStatus.SCHEDULED and s not in TERMINAL_STATUSES
)

# Button label for advancing into a status; other targets use the status name
ACTION_LABELS = MappingProxyType({
    MissionStatus.ACTIVE: "Start Mission",
    MissionStatus.COMPLETE: "Complete Mission",
})


def status_flow(location_type: LocationType) -> tuple:
    """Ordered statuses an agent walks through for this location type."""
    return STATUS_FLOWS[LocationType(location_type)]


def is_active_status(status: MissionStatus) -> bool:
    """Active = anything but Scheduled, Complete and Cancelled."""
    return MissionStatus(status) in ACTIVE_STATUSES


def is_terminal_status(status: MissionStatus) -> bool:
    return MissionStatus(status) in TERMINAL_STATUSES


def peek_next_status(status: MissionStatus, location_type: LocationType) -> Optional[MissionStatus]:
    """
    The status `advance` would move to, or None from a terminal status.

    The next status is the first one in the location's flow with a higher
    ordinal, so a mission put on an off-flow synonym by an admin override
    (e.g. "Arrived at Port" on an airport mission) still advances.
    """
    status = MissionStatus(status)
    if status in TERMINAL_STATUSES:
        return None

    current = STATUS_ORDINAL[status]
    for candidate in status_flow(location_type):
        if STATUS_ORDINAL[candidate] > current:
            return candidate
    return None


def action_label(status: MissionStatus, location_type: LocationType) -> Optional[str]:
    """Label for the agent's advance button, None when nothing is left to do."""
    target = peek_next_status(status, location_type)
    if target is None:
        return None
    return ACTION_LABELS.get(target, target.value)


def next_status(status: MissionStatus, location_type: LocationType) -> MissionStatus:
    """
    The status immediately following `status`.

    Raises:
        InvalidTransitionError: status is Complete or Cancelled
    """
    candidate = peek_next_status(status, location_type)
    if candidate is None:
        raise InvalidTransitionError(MissionStatus(status).value)
    return candidate
