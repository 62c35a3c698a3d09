"""
Geolocation capability interface.

The sampler never reaches for a platform API directly; the device shell
injects a `GeolocationProvider` and tests inject a fake one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Dict, Any


class PermissionState(str, Enum):
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"
    REQUESTING = "requesting"


class GeolocationErrorCode(int, Enum):
    """Same numbering as the W3C GeolocationPositionError codes."""
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


@dataclass(frozen=True)
class GeolocationError:
    code: GeolocationErrorCode
    message: str

    @property
    def is_transient(self) -> bool:
        return self.code != GeolocationErrorCode.PERMISSION_DENIED


@dataclass(frozen=True)
class GeoPosition:
    """Raw fix reported by the device."""
    lat: float
    lng: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class LocationSample:
    """A fix stamped with the device clock in milliseconds."""
    lat: float
    lng: float
    accuracy: Optional[float]
    timestamp: int


@dataclass(frozen=True)
class WatchOptions:
    enable_high_accuracy: bool = True
    timeout: int = 10000
    maximum_age: int = 5000

    def as_dict(self) -> Dict[str, Any]:
        return {
            "enableHighAccuracy": self.enable_high_accuracy,
            "timeout": self.timeout,
            "maximumAge": self.maximum_age,
        }


PositionCallback = Callable[[GeoPosition], None]
ErrorCallback = Callable[[GeolocationError], None]


class GeolocationProvider:
    """Device positioning capability."""

    def is_supported(self) -> bool:
        raise NotImplementedError

    def query_permission(self) -> str:
        """Current permission as "granted", "prompt" or "denied"."""
        raise NotImplementedError

    def watch_position(self, on_position: PositionCallback, on_error: ErrorCallback, options: WatchOptions):
        """Start a continuous watch and return its id."""
        raise NotImplementedError

    def get_current_position(self, on_position: PositionCallback, on_error: ErrorCallback, options: WatchOptions) -> None:
        """One-shot fix; on most platforms this is what raises the permission prompt."""
        raise NotImplementedError

    def clear_watch(self, watch_id) -> None:
        raise NotImplementedError
