"""locshare - share one location device between many monitors."""

from locshare.location import (
    AlreadyRegisteredError,
    AuthorizationStatus,
    LocationCoordinator,
    LocationReading,
    MonitoringUnavailableError,
    RegistrationResult,
    shared_coordinator,
)

__all__ = [
    "AlreadyRegisteredError",
    "AuthorizationStatus",
    "LocationCoordinator",
    "LocationReading",
    "MonitoringUnavailableError",
    "RegistrationResult",
    "shared_coordinator",
]
