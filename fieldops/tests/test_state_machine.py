"""
Mission status flow tests.

Pure rules, no database.
"""

import pytest

from fieldops.app.core.exceptions import InvalidTransitionError, InvalidStateError
from fieldops.app.domain.missions.state_machine import (
    STATUS_ORDINAL,
    status_flow,
    next_status,
    peek_next_status,
    action_label,
    is_active_status,
    is_terminal_status,
)
from fieldops.app.models.enums import MissionStatus, LocationType


S = MissionStatus


@pytest.mark.parametrize("location_type, expected", [
    (LocationType.AIRPORT, [S.SCHEDULED, S.ACTIVE, S.ARRIVED_AT_AIRPORT, S.PASSENGER_MET, S.LUGGAGE_COLLECTED, S.COMPLETE]),
    (LocationType.TRAIN_STATION, [S.SCHEDULED, S.ACTIVE, S.ARRIVED_AT_STATION, S.PASSENGER_MET, S.LUGGAGE_COLLECTED, S.COMPLETE]),
    (LocationType.PORT, [S.SCHEDULED, S.ACTIVE, S.ARRIVED_AT_PORT, S.PASSENGER_MET, S.LUGGAGE_COLLECTED, S.COMPLETE]),
    (LocationType.ADDRESS, [S.SCHEDULED, S.ACTIVE, S.PASSENGER_MET, S.IN_TRANSIT, S.COMPLETE]),
])
def test_walking_the_flow_visits_every_status_in_order(location_type, expected):
    visited = [S.SCHEDULED]
    while not is_terminal_status(visited[-1]):
        visited.append(next_status(visited[-1], location_type))

    assert visited == expected
    assert list(status_flow(location_type)) == expected


@pytest.mark.parametrize("location_type", list(LocationType))
def test_advance_strictly_increases_ordinal(location_type):
    for status in status_flow(location_type)[:-1]:
        assert STATUS_ORDINAL[next_status(status, location_type)] > STATUS_ORDINAL[status]


@pytest.mark.parametrize("terminal", [S.COMPLETE, S.CANCELLED])
def test_terminal_statuses_cannot_advance(terminal):
    with pytest.raises(InvalidTransitionError) as exc_info:
        next_status(terminal, LocationType.AIRPORT)

    assert exc_info.value.error_code == "ERR_STATE_002"
    assert isinstance(exc_info.value, InvalidStateError)
    assert peek_next_status(terminal, LocationType.AIRPORT) is None


def test_off_flow_synonym_still_advances():
    # An admin put an airport mission on the port synonym
    assert next_status(S.ARRIVED_AT_PORT, LocationType.AIRPORT) == S.PASSENGER_MET


def test_address_flow_skips_arrival():
    assert next_status(S.ACTIVE, LocationType.ADDRESS) == S.PASSENGER_MET
    assert next_status(S.PASSENGER_MET, LocationType.ADDRESS) == S.IN_TRANSIT


def test_action_labels():
    assert action_label(S.SCHEDULED, LocationType.AIRPORT) == "Start Mission"
    assert action_label(S.ACTIVE, LocationType.TRAIN_STATION) == "Arrived at Station"
    assert action_label(S.LUGGAGE_COLLECTED, LocationType.AIRPORT) == "Complete Mission"
    assert action_label(S.COMPLETE, LocationType.AIRPORT) is None


def test_status_strings_are_stable():
    assert S.ARRIVED_AT_AIRPORT.value == "Arrived at Airport"
    assert S.LUGGAGE_COLLECTED.value == "Luggage Collected"
    assert S("In Transit") is S.IN_TRANSIT


@pytest.mark.parametrize("status, active", [
    (S.SCHEDULED, False),
    (S.ACTIVE, True),
    (S.ARRIVED_AT_AIRPORT, True),
    (S.ARRIVED_AT_STATION, True),
    (S.ARRIVED_AT_PORT, True),
    (S.PASSENGER_MET, True),
    (S.LUGGAGE_COLLECTED, True),
    (S.IN_TRANSIT, True),
    (S.COMPLETE, False),
    (S.CANCELLED, False),
])
def test_active_statuses(status, active):
    assert is_active_status(status) is active
