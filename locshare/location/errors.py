"""Errors reported by location monitor registration."""

from typing import Optional

from locshare.constants import ERROR_DOMAIN


class LocationMonitorError(Exception):
    """Base class for registration failures.

    Instances are returned as values from ``LocationCoordinator.register``
    rather than raised.
    """

    code: int = -1
    message: str = "Location monitor error."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.domain = ERROR_DOMAIN

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class MonitoringUnavailableError(LocationMonitorError):
    """Location services are disabled at the platform level."""

    code = 0
    message = "Location monitoring unavailable."


class AlreadyRegisteredError(LocationMonitorError):
    """The identity already has a registered monitor."""

    code = 1
    message = "Object is already registered as a location monitor."
