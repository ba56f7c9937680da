"""Device session controller."""

from locshare.location.device import AbstractLocationDevice, AuthorizationStatus
from locshare.logging import LOCSHARE_LOGGER


class DeviceSessionController:
    """
    Owns the single location device handle and its running state.

    start() and stop() are idempotent: the device is only called when the
    running state actually changes. A start requested before permission is
    granted is picked up again by on_permission_changed(). Callers serialize
    access.
    """

    def __init__(self, device: AbstractLocationDevice):
        self.device = device
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def accuracy(self) -> float:
        return self.device.desired_accuracy

    def is_available(self) -> bool:
        return self.device.location_services_enabled()

    def permission_state(self) -> AuthorizationStatus:
        return self.device.authorization_status()

    def request_foreground_permission(self) -> None:
        LOCSHARE_LOGGER.info("Requesting foreground location permission")
        self.device.request_when_in_use_authorization()

    def request_always_permission(self) -> None:
        LOCSHARE_LOGGER.info("Requesting always location permission")
        self.device.request_always_authorization()

    def set_accuracy(self, value: float) -> None:
        if value != self.device.desired_accuracy:
            LOCSHARE_LOGGER.debug(f"Device accuracy {self.device.desired_accuracy}m -> {value}m")
        self.device.desired_accuracy = value

    def start(self) -> None:
        """Start the device unless already running. Deferred while permission is not granted."""
        if self._running:
            return
        state = self.permission_state()
        if not state.is_granted:
            LOCSHARE_LOGGER.info(f"Location updates deferred until permission is granted ({state.value})")
            return
        self.device.start_updating_location()
        self._running = True
        LOCSHARE_LOGGER.info(f"Location updates started (accuracy: {self.accuracy}m)")

    def stop(self) -> None:
        if not self._running:
            return
        self.device.stop_updating_location()
        self._running = False
        LOCSHARE_LOGGER.info("Location updates stopped")

    def on_permission_changed(self, new_state: AuthorizationStatus, has_monitors: bool) -> None:
        """
        React to a permission change reported by the device.

        Args:
            new_state: The new authorization status
            has_monitors: Whether any monitor is currently registered
        """
        LOCSHARE_LOGGER.info(f"Location permission changed: {new_state.value}")
        if new_state.is_granted and has_monitors:
            self.start()
