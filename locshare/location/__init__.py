"""Location monitor multiplexing for locshare."""

from locshare.location.accuracy import reconcile_accuracy
from locshare.location.coordinator import LocationCoordinator, RegistrationResult, shared_coordinator
from locshare.location.device import AbstractLocationDevice, AuthorizationStatus, LocationDeviceDelegate
from locshare.location.dispatcher import UpdateDispatcher
from locshare.location.dummy_device import DummyLocationDevice
from locshare.location.errors import AlreadyRegisteredError, LocationMonitorError, MonitoringUnavailableError
from locshare.location.executors import InlineExecutor, main_executor
from locshare.location.gpsd_device import GpsdLocationDevice
from locshare.location.monitor_registry import CallbackSink, LocationSink, MonitorRecord, MonitorRegistry
from locshare.location.reading import LocationReading
from locshare.location.session import DeviceSessionController

__all__ = [
    "AbstractLocationDevice",
    "AlreadyRegisteredError",
    "AuthorizationStatus",
    "CallbackSink",
    "DeviceSessionController",
    "DummyLocationDevice",
    "GpsdLocationDevice",
    "InlineExecutor",
    "LocationCoordinator",
    "LocationDeviceDelegate",
    "LocationMonitorError",
    "LocationReading",
    "LocationSink",
    "MonitorRecord",
    "MonitorRegistry",
    "MonitoringUnavailableError",
    "RegistrationResult",
    "UpdateDispatcher",
    "main_executor",
    "reconcile_accuracy",
    "shared_coordinator",
]
