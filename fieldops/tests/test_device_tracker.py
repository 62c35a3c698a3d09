"""
Agent device tests: the API client against a mock transport and the
mission tracker driving the sampler from mission status.
"""

import json

import httpx
import pytest

from fieldops.device.api_client import MissionApiClient
from fieldops.device.geolocation import LocationSample
from fieldops.device.tracker import MissionTracker
from test_sampler import FakeProvider, ManualClock, PARIS


class FakeApi:
    """Records requests and serves a single mission."""

    def __init__(self, status="Scheduled", version=1):
        self.mission = {"id": 7, "status": status, "version": version}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))

        if request.url.path == "/v1/missions/7":
            return httpx.Response(200, json=self.mission)
        if request.url.path == "/v1/agent/missions/7/advance":
            if body and body.get("expected_version") not in (None, self.mission["version"]):
                return httpx.Response(409, json={"error_code": "ERR_CONFLICT_001"})
            self.mission = {**self.mission, "status": "Active", "version": self.mission["version"] + 1}
            return httpx.Response(200, json=self.mission)
        if request.url.path == "/v1/agent/missions/7/location":
            return httpx.Response(201, json={"id": len(self.requests), **body})
        return httpx.Response(404, json={"error_code": "ERR_NOT_FOUND_001"})


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def api_client(fake_api):
    with MissionApiClient(
        "http://fieldops.test/", token="token", transport=httpx.MockTransport(fake_api.handler)
    ) as client:
        yield client


def test_client_sends_bearer_token_and_versioned_paths():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["url"] = str(request.url)
        return httpx.Response(200, json=[])

    with MissionApiClient("http://fieldops.test", token="abc", transport=httpx.MockTransport(handler)) as client:
        assert client.list_assigned_missions() == []

    assert seen == {"auth": "Bearer abc", "url": "http://fieldops.test/v1/agent/missions"}


def test_post_location_omits_device_timestamp(api_client, fake_api):
    api_client.post_location(7, LocationSample(lat=48.85, lng=2.35, accuracy=4.0, timestamp=123))

    assert fake_api.requests[-1] == ("POST", "/v1/agent/missions/7/location", {"lat": 48.85, "lng": 2.35})


def test_client_raises_on_error_status(api_client):
    with pytest.raises(httpx.HTTPStatusError):
        api_client.get_mission(8)


def test_tracker_starts_sampling_once_mission_is_active(api_client, fake_api):
    provider = FakeProvider()
    with MissionTracker(api_client, provider, 7, clock=ManualClock()) as tracker:
        assert not tracker.loaded

        tracker.refresh()
        assert tracker.loaded
        assert not tracker.sampler.is_tracking

        tracker.advance()
        assert tracker.mission["status"] == "Active"
        assert tracker.sampler.is_tracking

        provider.emit(*PARIS)

    assert fake_api.requests[1] == ("POST", "/v1/agent/missions/7/advance", {"expected_version": 1})
    assert fake_api.requests[-1][1] == "/v1/agent/missions/7/location"
    assert provider.active_watches == []


def test_tracker_stops_sampling_when_mission_ends(api_client, fake_api):
    fake_api.mission["status"] = "Luggage Collected"
    provider = FakeProvider()
    tracker = MissionTracker(api_client, provider, 7, clock=ManualClock())

    tracker.refresh()
    assert tracker.sampler.is_tracking

    fake_api.mission["status"] = "Complete"
    tracker.refresh()
    assert not tracker.sampler.is_tracking
    assert provider.active_watches == []


def test_stale_advance_surfaces_conflict(api_client, fake_api):
    tracker = MissionTracker(api_client, FakeProvider(), 7, clock=ManualClock())
    tracker.refresh()
    fake_api.mission["version"] = 2

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        tracker.advance()

    assert exc_info.value.response.status_code == 409
    assert tracker.mission["version"] == 1
