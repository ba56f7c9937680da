"""Location device interface consumed by the coordinator."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Protocol, Sequence

from locshare.constants import DEFAULT_FALLBACK_ACCURACY
from locshare.location.reading import LocationReading


class AuthorizationStatus(str, Enum):
    """Platform-granted permission to obtain location data."""

    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"

    @property
    def is_granted(self) -> bool:
        return self in (AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, AuthorizationStatus.AUTHORIZED_ALWAYS)


class LocationDeviceDelegate(Protocol):
    """Receives events from a location device."""

    def on_locations(self, readings: Sequence[LocationReading]) -> None: ...

    def on_authorization_changed(self, status: AuthorizationStatus) -> None: ...


class AbstractLocationDevice(ABC):
    """Abstract base class for location sensing devices.

    Implementations deliver events by calling ``_emit_locations`` and
    ``_emit_authorization_change`` from whatever thread they run on.
    ``desired_accuracy`` is a hint in meters; implementations apply it on the
    next start or immediately if already running.
    """

    def __init__(self):
        self._delegate: Optional[LocationDeviceDelegate] = None
        self._desired_accuracy: float = DEFAULT_FALLBACK_ACCURACY

    # ------------------------------------------------------------------
    # Core abstract methods
    # ------------------------------------------------------------------

    @abstractmethod
    def location_services_enabled(self) -> bool:
        """Check whether location sensing is enabled system-wide."""
        pass

    @abstractmethod
    def authorization_status(self) -> AuthorizationStatus:
        """Get the current permission state."""
        pass

    @abstractmethod
    def request_when_in_use_authorization(self) -> None:
        """Ask the platform for foreground-only permission."""
        pass

    @abstractmethod
    def request_always_authorization(self) -> None:
        """Ask the platform for foreground and background permission."""
        pass

    @abstractmethod
    def start_updating_location(self) -> None:
        """Begin delivering continuous location updates."""
        pass

    @abstractmethod
    def stop_updating_location(self) -> None:
        """Stop delivering location updates."""
        pass

    # ------------------------------------------------------------------
    # Shared plumbing
    # ------------------------------------------------------------------

    @property
    def desired_accuracy(self) -> float:
        return self._desired_accuracy

    @desired_accuracy.setter
    def desired_accuracy(self, value: float) -> None:
        self._desired_accuracy = value

    @property
    def delegate(self) -> Optional[LocationDeviceDelegate]:
        return self._delegate

    def set_delegate(self, delegate: Optional[LocationDeviceDelegate]) -> None:
        self._delegate = delegate

    def _emit_locations(self, readings: Sequence[LocationReading]) -> None:
        if self._delegate is not None and readings:
            self._delegate.on_locations(readings)

    def _emit_authorization_change(self, status: AuthorizationStatus) -> None:
        if self._delegate is not None:
            self._delegate.on_authorization_changed(status)
