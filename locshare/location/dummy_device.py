"""Dummy location device for testing without real hardware."""

import threading
from typing import List, Optional

from locshare.location.device import AbstractLocationDevice, AuthorizationStatus
from locshare.location.reading import LocationReading
from locshare.logging import LOCSHARE_LOGGER

# Default simulated position - Pikes Peak
_DEFAULT_LAT_DEG = 38.8409
_DEFAULT_LON_DEG = -105.0423
_DEFAULT_ALT_M = 4302.0


class DummyLocationDevice(AbstractLocationDevice):
    """
    Simulated location device with controllable availability and permissions.

    Readings are only produced when ``emit`` is called, on the calling thread.
    All calls made by the coordinator are counted so tests can assert on them.
    """

    def __init__(
        self,
        enabled: bool = True,
        status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED_ALWAYS,
        grant_on_request: bool = False,
    ):
        """
        Initialize the dummy device.

        Args:
            enabled: Value reported by location_services_enabled()
            status: Initial authorization status
            grant_on_request: If True, a permission request made while the status is
                undetermined is granted immediately and the change is emitted
        """
        super().__init__()
        self.enabled = enabled
        self.grant_on_request = grant_on_request
        self._status = status
        self._lock = threading.Lock()
        self.running = False

        self.start_calls = 0
        self.stop_calls = 0
        self.when_in_use_requests = 0
        self.always_requests = 0
        self.accuracy_history: List[float] = []

    def location_services_enabled(self) -> bool:
        return self.enabled

    def authorization_status(self) -> AuthorizationStatus:
        with self._lock:
            return self._status

    def request_when_in_use_authorization(self) -> None:
        self.when_in_use_requests += 1
        self._maybe_grant(AuthorizationStatus.AUTHORIZED_WHEN_IN_USE)

    def request_always_authorization(self) -> None:
        self.always_requests += 1
        self._maybe_grant(AuthorizationStatus.AUTHORIZED_ALWAYS)

    def start_updating_location(self) -> None:
        self.start_calls += 1
        self.running = True
        LOCSHARE_LOGGER.debug("Dummy location device started")

    def stop_updating_location(self) -> None:
        self.stop_calls += 1
        self.running = False
        LOCSHARE_LOGGER.debug("Dummy location device stopped")

    @AbstractLocationDevice.desired_accuracy.setter
    def desired_accuracy(self, value: float) -> None:
        self._desired_accuracy = value
        self.accuracy_history.append(value)

    def set_authorization_status(self, status: AuthorizationStatus) -> None:
        """Change the authorization status and notify the delegate, like a user answering a prompt."""
        with self._lock:
            self._status = status
        self._emit_authorization_change(status)

    def emit(self, *readings: LocationReading) -> None:
        """Deliver readings to the delegate. With no arguments, emits one reading at the default position."""
        if not readings:
            readings = (self.default_reading(),)
        self._emit_locations(list(readings))

    def default_reading(self, horizontal_accuracy: Optional[float] = None) -> LocationReading:
        accuracy = self._desired_accuracy if horizontal_accuracy is None else horizontal_accuracy
        return LocationReading(
            latitude=_DEFAULT_LAT_DEG,
            longitude=_DEFAULT_LON_DEG,
            altitude=_DEFAULT_ALT_M,
            horizontal_accuracy=max(accuracy, 0.0),
        )

    def _maybe_grant(self, status: AuthorizationStatus) -> None:
        if not self.grant_on_request:
            return
        with self._lock:
            if self._status != AuthorizationStatus.NOT_DETERMINED:
                return
        self.set_authorization_status(status)
