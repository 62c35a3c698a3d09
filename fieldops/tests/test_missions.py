"""
Mission lifecycle tests.

Creation, agent advance, admin override, assignment, tenancy and the
status/event atomicity guarantee.
"""

import pytest
from sqlalchemy import select

from fieldops.app.core.exceptions import ConflictError, InvalidTransitionError, ValidationError, NotFoundError
from fieldops.app.domain.missions.event_log import MissionEventLog
from fieldops.app.domain.missions.mission_service import MissionService
from fieldops.app.models.audit_log import AuditLog
from fieldops.app.models.enums import MissionStatus, LocationType, MissionEventType
from fieldops.app.models.mission import Mission
from fieldops.app.models.mission_event import MissionEvent
from conftest import auth_headers, create_mission, create_rate_card, count_status_changes


MISSION_PAYLOAD = {
    "passenger_name": "Jane Traveller",
    "passenger_count": 3,
    "flight_number": "AF1234",
    "scheduled_at": "2026-06-06T23:00:00Z",
    "pickup_location": "CDG Terminal 2E",
    "service_type": "Meet & Greet",
    "location_type": "Airport",
}


async def status_events(session_factory, mission_id):
    async with session_factory() as session:
        result = await session.execute(
            select(MissionEvent).where(
                MissionEvent.mission_id == mission_id,
                MissionEvent.event_type == MissionEventType.STATUS_CHANGE
            ).order_by(MissionEvent.id)
        )
        return result.scalars().all()


async def reload_mission(session_factory, mission_id):
    async with session_factory() as session:
        return await session.get(Mission, mission_id)


# Creation

@pytest.mark.asyncio
async def test_client_creates_scheduled_mission(client, client_user):
    response = await client.post("/v1/missions", json=MISSION_PAYLOAD, headers=auth_headers(client_user))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "Scheduled"
    assert data["client_id"] == client_user.id
    assert data["agent_id"] is None
    assert data["quoted_price"] is None
    assert data["version"] == 1
    assert data["next_status"] == "Active"
    assert data["next_action_label"] == "Start Mission"


@pytest.mark.asyncio
async def test_create_with_quote_prices_the_mission(client, client_user, db_session):
    await create_rate_card(
        db_session,
        per_passenger_price=1000,
        night_surcharge_percent=20,
        weekend_surcharge_percent=10
    )

    payload = {**MISSION_PAYLOAD, "quote": True}
    response = await client.post("/v1/missions", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 201
    assert response.json()["quoted_price"] == 9900
    assert response.json()["currency"] == "EUR"


@pytest.mark.asyncio
async def test_create_with_quote_and_no_rate_card_leaves_price_empty(client, client_user):
    payload = {**MISSION_PAYLOAD, "quote": True}
    response = await client.post("/v1/missions", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 201
    assert response.json()["quoted_price"] is None


@pytest.mark.asyncio
async def test_client_cannot_create_for_another_client(client, client_user, other_client):
    payload = {**MISSION_PAYLOAD, "client_id": other_client.id}
    response = await client.post("/v1/missions", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_admin_must_name_the_client(client, admin, client_user):
    response = await client.post("/v1/missions", json=MISSION_PAYLOAD, headers=auth_headers(admin))
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    payload = {**MISSION_PAYLOAD, "client_id": client_user.id}
    response = await client.post("/v1/missions", json=payload, headers=auth_headers(admin))
    assert response.status_code == 201
    assert response.json()["client_id"] == client_user.id


@pytest.mark.asyncio
async def test_agents_cannot_create_missions(client, agent):
    response = await client.post("/v1/missions", json=MISSION_PAYLOAD, headers=auth_headers(agent))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_requires_passenger_name(db_session, client_user):
    data = {
        "passenger_name": "  ",
        "pickup_location": "CDG",
        "scheduled_at": MISSION_PAYLOAD["scheduled_at"],
        "service_type": "VIP",
    }
    with pytest.raises(ValidationError) as exc_info:
        await MissionService.create_mission(db_session, client_user.id, data)

    assert exc_info.value.details == {"field": "passenger_name"}


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    response = await client.get("/v1/missions")
    assert response.status_code in (401, 403)


# Tenancy

@pytest.mark.asyncio
async def test_client_sees_only_own_missions(client, db_session, client_user, other_client):
    own = await create_mission(db_session, client_user)
    foreign = await create_mission(db_session, other_client)

    response = await client.get("/v1/missions", headers=auth_headers(client_user))
    assert [m["id"] for m in response.json()] == [own.id]

    response = await client.get(f"/v1/missions/{foreign.id}", headers=auth_headers(client_user))
    assert response.status_code == 403

    response = await client.get(f"/v1/missions/{foreign.id}/events", headers=auth_headers(client_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_agent_sees_only_assigned_missions(client, db_session, client_user, agent, other_agent):
    assigned = await create_mission(db_session, client_user, agent=agent)
    await create_mission(db_session, client_user, agent=other_agent)

    response = await client.get("/v1/agent/missions", headers=auth_headers(agent))
    assert [m["id"] for m in response.json()] == [assigned.id]


@pytest.mark.asyncio
async def test_admin_sees_everything(client, db_session, admin, client_user, other_client):
    await create_mission(db_session, client_user)
    await create_mission(db_session, other_client)

    response = await client.get("/v1/missions", headers=auth_headers(admin))
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_missing_mission_is_404(client, admin):
    response = await client.get("/v1/missions/999", headers=auth_headers(admin))
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


# Advance

@pytest.mark.asyncio
async def test_advance_moves_one_step_and_records_event(client, db_session, session_factory, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent)

    response = await client.post(f"/v1/agent/missions/{mission.id}/advance", headers=auth_headers(agent))

    assert response.status_code == 200
    assert response.json()["status"] == "Active"
    assert response.json()["version"] == 2

    events = await status_events(session_factory, mission.id)
    assert len(events) == 1
    assert events[0].previous_status == "Scheduled"
    assert events[0].new_status == "Active"
    assert events[0].agent_id == agent.id


@pytest.mark.asyncio
async def test_full_address_flow(db_session, session_factory, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent, location_type=LocationType.ADDRESS)

    seen = []
    for _ in range(4):
        async with session_factory() as session:
            updated = await MissionService.advance(session, mission.id, agent.id)
            seen.append(updated.status)

    assert seen == [
        MissionStatus.ACTIVE,
        MissionStatus.PASSENGER_MET,
        MissionStatus.IN_TRANSIT,
        MissionStatus.COMPLETE,
    ]
    events = await status_events(session_factory, mission.id)
    assert [e.previous_status for e in events] == ["Scheduled", "Active", "Passenger Met", "In Transit"]


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal", [MissionStatus.COMPLETE, MissionStatus.CANCELLED])
async def test_advance_from_terminal_is_rejected_without_event(client, db_session, session_factory, client_user, agent, terminal):
    mission = await create_mission(db_session, client_user, agent=agent, status=terminal)

    response = await client.post(f"/v1/agent/missions/{mission.id}/advance", headers=auth_headers(agent))

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_STATE_002"
    assert await status_events(session_factory, mission.id) == []


@pytest.mark.asyncio
async def test_unassigned_agent_cannot_advance(client, db_session, client_user, agent, other_agent):
    mission = await create_mission(db_session, client_user, agent=agent)

    response = await client.post(f"/v1/agent/missions/{mission.id}/advance", headers=auth_headers(other_agent))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_advance_is_atomic_when_event_write_fails(mocker, db_session, session_factory, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent)
    mocker.patch.object(
        MissionEventLog, "record_status_change", side_effect=RuntimeError("disk full")
    )

    async with session_factory() as session:
        with pytest.raises(RuntimeError):
            await MissionService.advance(session, mission.id, agent.id)

    reloaded = await reload_mission(session_factory, mission.id)
    assert reloaded.status == MissionStatus.SCHEDULED
    assert reloaded.version == 1
    assert await status_events(session_factory, mission.id) == []


@pytest.mark.asyncio
async def test_each_write_adds_exactly_one_matching_event(db_session, session_factory, client_user, agent, admin):
    mission = await create_mission(db_session, client_user, agent=agent)

    async with session_factory() as session:
        before = await count_status_changes(session, mission.id, MissionStatus.ACTIVE)
        await MissionService.advance(session, mission.id, agent.id)
        after = await count_status_changes(session, mission.id, MissionStatus.ACTIVE)
    assert after == before + 1

    async with session_factory() as session:
        before = await count_status_changes(session, mission.id, MissionStatus.CANCELLED)
        await MissionService.set_status(session, mission.id, MissionStatus.CANCELLED, admin.id)
        after = await count_status_changes(session, mission.id, MissionStatus.CANCELLED)
    assert after == before + 1


# Optimistic concurrency

@pytest.mark.asyncio
async def test_stale_expected_version_is_rejected(client, db_session, session_factory, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent)

    response = await client.post(
        f"/v1/agent/missions/{mission.id}/advance",
        json={"expected_version": 1},
        headers=auth_headers(agent)
    )
    assert response.status_code == 200

    response = await client.post(
        f"/v1/agent/missions/{mission.id}/advance",
        json={"expected_version": 1},
        headers=auth_headers(agent)
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"

    reloaded = await reload_mission(session_factory, mission.id)
    assert reloaded.status == MissionStatus.ACTIVE
    assert len(await status_events(session_factory, mission.id)) == 1


@pytest.mark.asyncio
async def test_concurrent_writer_is_detected(db_session, session_factory, client_user, agent, admin):
    mission = await create_mission(db_session, client_user, agent=agent)

    async with session_factory() as agent_session, session_factory() as admin_session:
        agent_copy = await MissionService.get_mission(agent_session, mission.id)
        await MissionService.get_mission(admin_session, mission.id)

        await MissionService.set_status(admin_session, mission.id, MissionStatus.CANCELLED, admin.id)

        # The agent's copy still says version 1
        with pytest.raises(ConflictError):
            await MissionService.advance(agent_session, agent_copy.id, agent.id)

    reloaded = await reload_mission(session_factory, mission.id)
    assert reloaded.status == MissionStatus.CANCELLED


# Admin override and assignment

@pytest.mark.asyncio
async def test_admin_can_cancel_from_any_status(client, db_session, session_factory, admin, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent, status=MissionStatus.PASSENGER_MET)

    response = await client.patch(
        f"/v1/admin/missions/{mission.id}/status",
        json={"status": "Cancelled"},
        headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["status"] == "Cancelled"
    assert response.json()["next_status"] is None

    events = await status_events(session_factory, mission.id)
    assert events[-1].previous_status == "Passenger Met"
    assert events[-1].new_status == "Cancelled"
    assert events[-1].agent_id == admin.id


@pytest.mark.asyncio
async def test_status_override_is_admin_only(client, db_session, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent)

    response = await client.patch(
        f"/v1/admin/missions/{mission.id}/status",
        json={"status": "Complete"},
        headers=auth_headers(agent)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_assign_agent_is_audited(client, db_session, session_factory, admin, client_user, agent):
    mission = await create_mission(db_session, client_user)

    response = await client.patch(
        f"/v1/admin/missions/{mission.id}/assign-agent",
        json={"agent_id": agent.id},
        headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["agent_id"] == agent.id

    async with session_factory() as session:
        result = await session.execute(select(AuditLog).where(AuditLog.action == "AGENT_ASSIGNED"))
        audit = result.scalar_one()
    assert audit.target_id == mission.id
    assert audit.meta_data["agent_id"] == agent.id


@pytest.mark.asyncio
async def test_reassigning_same_agent_is_harmless(db_session, session_factory, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent)

    async with session_factory() as session:
        updated = await MissionService.assign_agent(session, mission.id, agent.id)

    assert updated.agent_id == agent.id


@pytest.mark.asyncio
async def test_only_agents_can_be_assigned(db_session, client_user, other_client):
    mission = await create_mission(db_session, client_user)

    with pytest.raises(ValidationError):
        await MissionService.assign_agent(db_session, mission.id, other_client.id)

    with pytest.raises(NotFoundError):
        await MissionService.assign_agent(db_session, mission.id, 999)


# Live map

@pytest.mark.asyncio
async def test_active_missions_feed(client, db_session, client_user, other_client, agent):
    active = await create_mission(db_session, client_user, agent=agent, status=MissionStatus.ACTIVE)
    await create_mission(db_session, client_user, status=MissionStatus.SCHEDULED)
    await create_mission(db_session, other_client, agent=agent, status=MissionStatus.ACTIVE)

    response = await client.post(
        f"/v1/agent/missions/{active.id}/location",
        json={"lat": 48.8566, "lng": 2.3522},
        headers=auth_headers(agent)
    )
    assert response.status_code == 201

    response = await client.get("/v1/missions/active", headers=auth_headers(client_user))

    assert response.status_code == 200
    feed = response.json()
    assert [m["id"] for m in feed] == [active.id]
    assert feed[0]["passenger_name"] == "Jane Traveller"
    assert feed[0]["location"]["lat"] == 48.8566


@pytest.mark.asyncio
async def test_terminal_advance_raises_typed_error(db_session, client_user, agent):
    mission = await create_mission(db_session, client_user, agent=agent, status=MissionStatus.COMPLETE)

    with pytest.raises(InvalidTransitionError):
        await MissionService.advance(db_session, mission.id, agent.id)
