"""
HTTP client the agent device uses to talk to the field operations API.
"""

import logging
from typing import Optional, Dict, Any, List

import httpx

from fieldops.app.core.config import settings
from fieldops.device.geolocation import LocationSample

logger = logging.getLogger(__name__)


class MissionApiClient:
    """Thin wrapper over the agent endpoints, authenticated with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.base_url = f"{base_url.rstrip('/')}/{settings.api_version}"
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport
        )

    def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        response = self._client.request(method, endpoint, **kwargs)
        response.raise_for_status()
        return response.json()

    def list_assigned_missions(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/agent/missions")

    def get_mission(self, mission_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/missions/{mission_id}")

    def advance(self, mission_id: int, expected_version: Optional[int] = None) -> Dict[str, Any]:
        body = {"expected_version": expected_version} if expected_version is not None else {}
        return self._request("POST", f"/agent/missions/{mission_id}/advance", json=body)

    def post_location(self, mission_id: int, sample: LocationSample) -> Dict[str, Any]:
        """Send a dispatched sample; the server assigns the timestamp."""
        return self._request(
            "POST",
            f"/agent/missions/{mission_id}/location",
            json={"lat": sample.lat, "lng": sample.lng}
        )

    def add_note(self, mission_id: int, note: str) -> Dict[str, Any]:
        return self._request("POST", f"/agent/missions/{mission_id}/notes", json={"note": note})

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
