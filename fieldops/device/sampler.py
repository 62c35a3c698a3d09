"""
Geolocation Sampler.

Runs the device position watch for an active mission and decides which raw
fixes are worth sending to the location ledger.

- every raw fix updates `location` (the on-screen indicator)
- a fix is dispatched when there is no previously dispatched fix, when it
  is more than `min_distance` metres from the last dispatched fix, or when
  more than `min_interval` ms have passed since it
- the watch exists only while enabled and permission is granted or prompt
"""

import logging
import math
import time
from typing import Callable, Optional

from fieldops.app.core.config import settings
from fieldops.device.geolocation import (
    GeolocationProvider,
    GeolocationError,
    GeolocationErrorCode,
    GeoPosition,
    LocationSample,
    PermissionState,
    WatchOptions,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000

NOT_SUPPORTED_MESSAGE = "Geolocation is not supported"

WATCHABLE_STATES = frozenset({PermissionState.GRANTED, PermissionState.PROMPT})


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres."""
    d_lat = (lat2 - lat1) * math.pi / 180
    d_lng = (lng2 - lng1) * math.pi / 180
    a = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2) +
        math.cos(lat1 * math.pi / 180) *
        math.cos(lat2 * math.pi / 180) *
        math.sin(d_lng / 2) *
        math.sin(d_lng / 2)
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def should_dispatch(
    last_dispatched: Optional[LocationSample],
    sample: LocationSample,
    min_distance: float,
    min_interval: int
) -> bool:
    """Throttle gate, always measured against the last dispatched sample."""
    if last_dispatched is None:
        return True

    distance = haversine_distance(last_dispatched.lat, last_dispatched.lng, sample.lat, sample.lng)
    elapsed = sample.timestamp - last_dispatched.timestamp

    return distance > min_distance or elapsed > min_interval


def _now_ms() -> int:
    return int(time.time() * 1000)


class GeolocationSampler:
    """
    Position watch with permission negotiation and throttled dispatch.

    Usage:
        with GeolocationSampler(provider, on_location_update=client.post) as sampler:
            sampler.set_enabled(True)
            ...
    """

    def __init__(
        self,
        provider: GeolocationProvider,
        on_location_update: Optional[Callable[[LocationSample], None]] = None,
        min_distance: Optional[float] = None,
        min_interval: Optional[int] = None,
        options: Optional[WatchOptions] = None,
        clock: Callable[[], int] = _now_ms
    ):
        self.provider = provider
        self.on_location_update = on_location_update
        self.min_distance = settings.tracking_min_distance_m if min_distance is None else min_distance
        self.min_interval = settings.tracking_min_interval_ms if min_interval is None else min_interval
        self.options = options or WatchOptions(
            timeout=settings.tracking_timeout_ms,
            maximum_age=settings.tracking_maximum_age_ms
        )
        self.clock = clock

        self.location: Optional[LocationSample] = None
        self.last_dispatched: Optional[LocationSample] = None
        self.error: Optional[str] = None
        self.enabled = False

        self._watch_id = None
        self.permission_state = self._initial_permission()

    @property
    def is_tracking(self) -> bool:
        return self._watch_id is not None

    def _initial_permission(self) -> PermissionState:
        if not self.provider.is_supported():
            self.error = NOT_SUPPORTED_MESSAGE
            return PermissionState.UNAVAILABLE
        try:
            return PermissionState(self.provider.query_permission())
        except (ValueError, NotImplementedError):
            # Platforms without a permissions query behave as "ask on use"
            return PermissionState.PROMPT

    # Lifecycle

    def set_enabled(self, enabled: bool) -> None:
        """Follow the mission: enabled while it is in an active status."""
        self.enabled = enabled
        self._sync_watch()

    def close(self) -> None:
        self.enabled = False
        self._release_watch()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def request_permission(self) -> PermissionState:
        """
        Ask the device for permission with a one-shot fix.

        This is the only way out of `denied`. If the provider raises, the
        watch is released, the previous state restored and the error
        re-raised.
        """
        if self.permission_state == PermissionState.UNAVAILABLE:
            return self.permission_state

        previous = self.permission_state
        self.permission_state = PermissionState.REQUESTING
        try:
            self._release_watch()
            self.provider.get_current_position(
                self._handle_permission_granted,
                self._handle_permission_error,
                self.options
            )
        except Exception as e:
            self._release_watch()
            if self.permission_state == PermissionState.REQUESTING:
                self.permission_state = previous
            self.error = str(e)
            logger.warning("Permission request failed: %s", e)
            raise

        self._sync_watch()
        return self.permission_state

    def _handle_permission_granted(self, position: GeoPosition) -> None:
        self.permission_state = PermissionState.GRANTED
        self._handle_position(position)
        self._sync_watch()

    def _handle_permission_error(self, error: GeolocationError) -> None:
        if error.code == GeolocationErrorCode.PERMISSION_DENIED:
            self.permission_state = PermissionState.DENIED
        else:
            # Could not get a fix, but nothing was refused
            self.permission_state = PermissionState.GRANTED
        self.error = error.message
        # The answer may arrive after request_permission() has returned
        self._sync_watch()

    # Watch

    def _sync_watch(self) -> None:
        should_watch = self.enabled and self.permission_state in WATCHABLE_STATES
        if should_watch and self._watch_id is None:
            self._acquire_watch()
        elif not should_watch and self._watch_id is not None:
            self._release_watch()

    def _acquire_watch(self) -> None:
        self._watch_id = self.provider.watch_position(
            self._handle_position,
            self._handle_error,
            self.options
        )
        logger.debug("Position watch %s started", self._watch_id)
        # Providers may report a denial synchronously from inside watch_position
        if self.permission_state not in WATCHABLE_STATES:
            self._release_watch()

    def _release_watch(self) -> None:
        watch_id, self._watch_id = self._watch_id, None
        if watch_id is not None:
            self.provider.clear_watch(watch_id)
            logger.debug("Position watch %s released", watch_id)

    def _handle_position(self, position: GeoPosition) -> None:
        sample = LocationSample(
            lat=position.lat,
            lng=position.lng,
            accuracy=position.accuracy,
            timestamp=self.clock()
        )
        self.location = sample
        self.error = None
        if self.permission_state == PermissionState.PROMPT:
            # A fix is proof that access was granted
            self.permission_state = PermissionState.GRANTED

        if not should_dispatch(self.last_dispatched, sample, self.min_distance, self.min_interval):
            return

        self.last_dispatched = sample
        if self.on_location_update is None:
            return
        try:
            self.on_location_update(sample)
        except Exception as e:
            # A failed upload must not stop the watch
            self.error = str(e)
            logger.warning("Location dispatch failed: %s", e)

    def _handle_error(self, error: GeolocationError) -> None:
        self.error = error.message
        if error.is_transient:
            logger.info("Transient geolocation error %s: %s", error.code.name, error.message)
            return

        logger.warning("Geolocation permission denied, stopping watch")
        self.permission_state = PermissionState.DENIED
        self._release_watch()
