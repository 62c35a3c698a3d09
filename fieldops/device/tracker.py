"""
Mission Tracker.

Binds a geolocation sampler to one mission on the agent's device: the
sampler is enabled only while the mission is in an active status, and every
dispatched sample is posted to the location endpoint.
"""

import logging
from typing import Optional, Dict, Any

from fieldops.app.domain.missions.state_machine import is_active_status
from fieldops.app.models.enums import MissionStatus
from fieldops.device.api_client import MissionApiClient
from fieldops.device.geolocation import GeolocationProvider, LocationSample
from fieldops.device.sampler import GeolocationSampler

logger = logging.getLogger(__name__)


class MissionTracker:

    def __init__(
        self,
        api: MissionApiClient,
        provider: GeolocationProvider,
        mission_id: int,
        **sampler_options
    ):
        self.api = api
        self.mission_id = mission_id
        # None until the first successful fetch
        self.mission: Optional[Dict[str, Any]] = None
        self.sampler = GeolocationSampler(
            provider,
            on_location_update=self._post_sample,
            **sampler_options
        )

    @property
    def loaded(self) -> bool:
        return self.mission is not None

    def _post_sample(self, sample: LocationSample) -> None:
        self.api.post_location(self.mission_id, sample)

    def _apply(self, mission: Dict[str, Any]) -> Dict[str, Any]:
        self.mission = mission
        active = is_active_status(MissionStatus(mission["status"]))
        self.sampler.set_enabled(active)
        logger.debug("Mission %s is %s, tracking=%s", self.mission_id, mission["status"], active)
        return mission

    def refresh(self) -> Dict[str, Any]:
        """Reload the mission and follow its status."""
        return self._apply(self.api.get_mission(self.mission_id))

    def advance(self) -> Dict[str, Any]:
        """Advance the mission, guarding against a stale local copy."""
        expected_version = self.mission["version"] if self.mission else None
        return self._apply(self.api.advance(self.mission_id, expected_version))

    def close(self) -> None:
        self.sampler.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
