"""Location coordinator.

Multiplexes many location monitors onto one location device: reconciles
their accuracy requirements, starts and stops the device as monitors come
and go, and fans each reading out to every monitor.
"""

import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Hashable, List, Optional, Sequence, Tuple, Union

from locshare.location.accuracy import reconcile_accuracy
from locshare.location.device import AbstractLocationDevice, AuthorizationStatus
from locshare.location.dispatcher import UpdateDispatcher
from locshare.location.errors import AlreadyRegisteredError, LocationMonitorError, MonitoringUnavailableError
from locshare.location.executors import main_executor
from locshare.location.gpsd_device import GpsdLocationDevice
from locshare.location.monitor_registry import LocationSink, MonitorRecord, MonitorRegistry, as_sink
from locshare.location.reading import LocationReading
from locshare.location.session import DeviceSessionController
from locshare.logging import LOCSHARE_LOGGER
from locshare.settings import LocShareSettings

MonitorCallback = Union[Callable[[LocationReading], None], LocationSink]

_shared: Optional["LocationCoordinator"] = None
_shared_lock = threading.Lock()


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a register() call. Truthy on success."""

    success: bool
    error: Optional[LocationMonitorError] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls) -> "RegistrationResult":
        return cls(success=True)

    @classmethod
    def failure(cls, error: LocationMonitorError) -> "RegistrationResult":
        return cls(success=False, error=error)


class LocationCoordinator:
    """
    Process-wide arbiter between location monitors and one location device.

    Use shared_coordinator() for the lazily created process instance, or
    construct one directly with an explicit device for isolation in tests.

    A single re-entrant lock serializes registration, deregistration and
    permission handling, so the device's accuracy and running state always
    match the registry that produced them. Readings are fanned out from an
    immutable registry snapshot that is swapped under the same lock.
    """

    def __init__(
        self,
        device: Optional[AbstractLocationDevice] = None,
        settings: Optional[LocShareSettings] = None,
    ):
        """
        Initialize the coordinator and take over the device.

        Args:
            device: Location device to drive. Defaults to a gpsd device built from settings.
            settings: Settings instance. Defaults to LocShareSettings() from the environment.
        """
        self.settings = settings or LocShareSettings()
        LOCSHARE_LOGGER.setLevel(self.settings.log_level)
        if device is None:
            device = GpsdLocationDevice(
                command=self.settings.gpsd_command,
                poll_interval_seconds=self.settings.gpsd_poll_interval_seconds,
                message_count=self.settings.gpsd_message_count,
            )

        self._lock = threading.RLock()
        self._registry = MonitorRegistry()
        self._snapshot: Tuple[MonitorRecord, ...] = ()
        self._session = DeviceSessionController(device)
        self._dispatcher = UpdateDispatcher()

        self._requires_foreground = False
        self._requires_always = False

        self._accuracy = self.settings.fallback_accuracy
        self._session.set_accuracy(self._accuracy)
        device.set_delegate(self)

    @classmethod
    def shared(cls) -> "LocationCoordinator":
        """Shared process-wide coordinator instance."""
        return shared_coordinator()

    @property
    def device(self) -> AbstractLocationDevice:
        return self._session.device

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        identity: Hashable,
        desired_accuracy: float,
        callback: MonitorCallback,
        executor: Optional[Executor] = None,
    ) -> RegistrationResult:
        """
        Add a monitor interested in location updates.

        Args:
            identity: Hashable key identifying the monitor; compared by equality only
            desired_accuracy: Accuracy in meters the monitor needs (lower is more precise)
            callback: Function taking one LocationReading, or an object with deliver()
            executor: Executor the callback runs on. Defaults to the main executor.

        Returns:
            RegistrationResult whose error is MonitoringUnavailableError or
            AlreadyRegisteredError on failure.
        """
        sink = as_sink(callback)
        if executor is None:
            executor = main_executor(self.settings.main_executor_thread_name)

        with self._lock:
            if not self._session.is_available():
                LOCSHARE_LOGGER.warning(f"Cannot register location monitor {identity!r}: location services disabled")
                return RegistrationResult.failure(MonitoringUnavailableError())

            record = MonitorRecord(
                identity=identity,
                desired_accuracy=desired_accuracy,
                executor=executor,
                sink=sink,
            )
            try:
                self._registry.add(record)
            except AlreadyRegisteredError as e:
                LOCSHARE_LOGGER.warning(f"Location monitor {identity!r} is already registered")
                return RegistrationResult.failure(e)

            LOCSHARE_LOGGER.info(
                f"Registered location monitor {identity!r} (accuracy: {desired_accuracy}m, "
                f"monitors: {self._registry.count()})"
            )
            self._apply_registry()
            if self._registry.count() > 0:
                self._session.start()

        return RegistrationResult.ok()

    def register_compat(
        self,
        identity: Hashable,
        desired_accuracy: float,
        callback: MonitorCallback,
        error_out: Optional[List[LocationMonitorError]] = None,
        executor: Optional[Executor] = None,
    ) -> bool:
        """
        Same as register(), reporting failure through an output list.

        Args:
            identity: Hashable key identifying the monitor
            desired_accuracy: Accuracy in meters the monitor needs
            callback: Function taking one LocationReading, or an object with deliver()
            error_out: List the error is appended to on failure, if given
            executor: Executor the callback runs on. Defaults to the main executor.

        Returns:
            True if the monitor was registered, False otherwise.
        """
        result = self.register(identity, desired_accuracy, callback, executor=executor)
        if not result.success and error_out is not None:
            error_out.append(result.error)
        return result.success

    def deregister(self, identity: Hashable) -> None:
        """Remove a monitor. Unknown identities are ignored."""
        with self._lock:
            removed = self._registry.remove(identity)
            if removed:
                LOCSHARE_LOGGER.info(
                    f"Deregistered location monitor {identity!r} (monitors: {self._registry.count()})"
                )
            self._apply_registry()
            if self._registry.count() == 0:
                self._session.stop()

    def _apply_registry(self) -> None:
        """Reconcile accuracy, push it to the device and publish a new snapshot. Lock must be held."""
        self._accuracy = reconcile_accuracy(self._registry, self.settings.fallback_accuracy)
        self._session.set_accuracy(self._accuracy)
        self._snapshot = self._registry.snapshot()

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        """True while at least one monitor is registered."""
        with self._lock:
            return self._registry.count() > 0

    @property
    def is_available(self) -> bool:
        """True if location services are enabled on this host."""
        return self._session.is_available()

    @property
    def is_running(self) -> bool:
        """True while the device is delivering updates."""
        with self._lock:
            return self._session.is_running

    @property
    def monitor_count(self) -> int:
        with self._lock:
            return self._registry.count()

    @property
    def current_accuracy(self) -> float:
        """Reconciled accuracy currently applied to the device."""
        with self._lock:
            return self._accuracy

    def find_monitor(self, identity: Hashable) -> Optional[MonitorRecord]:
        with self._lock:
            return self._registry.find(identity)

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    @property
    def requires_foreground(self) -> bool:
        return self._requires_foreground

    @requires_foreground.setter
    def requires_foreground(self, value: bool) -> None:
        # Permissions cannot be revoked from here; only True has an effect
        self._requires_foreground = value
        if value:
            self._session.request_foreground_permission()

    @property
    def requires_always(self) -> bool:
        return self._requires_always

    @requires_always.setter
    def requires_always(self, value: bool) -> None:
        self._requires_always = value
        if value:
            self._session.request_always_permission()

    @property
    def permission_state(self) -> AuthorizationStatus:
        return self._session.permission_state()

    @property
    def is_denied(self) -> bool:
        return self._session.permission_state() == AuthorizationStatus.DENIED

    @property
    def is_permitted_foreground(self) -> bool:
        return self._session.permission_state() == AuthorizationStatus.AUTHORIZED_WHEN_IN_USE

    @property
    def is_permitted_always(self) -> bool:
        return self._session.permission_state() == AuthorizationStatus.AUTHORIZED_ALWAYS

    # ------------------------------------------------------------------
    # Device delegate
    # ------------------------------------------------------------------

    def on_locations(self, readings: Sequence[LocationReading]) -> None:
        """Fan out readings from the device. Called on the device's thread."""
        # Snapshot is replaced atomically under the lock, reading it needs no lock
        records = self._snapshot
        if not records:
            return
        self._dispatcher.dispatch(readings, records)

    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        """Start the device if permission arrived after monitors registered."""
        with self._lock:
            self._session.on_permission_changed(status, has_monitors=self._registry.count() > 0)


def shared_coordinator() -> LocationCoordinator:
    """
    Return the process-wide coordinator, creating it on first access.

    The instance is never torn down; it lives as long as the process.
    """
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = LocationCoordinator()
        return _shared
