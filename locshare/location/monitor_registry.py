"""Monitor records and the registry that holds them."""

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Hashable, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from locshare.location.errors import AlreadyRegisteredError
from locshare.location.reading import LocationReading


@runtime_checkable
class LocationSink(Protocol):
    """Receives location readings for one monitor."""

    def deliver(self, reading: LocationReading) -> None: ...


@dataclass(frozen=True)
class CallbackSink:
    """Adapts a plain ``callback(reading)`` function to the sink interface."""

    callback: Callable[[LocationReading], None]

    def deliver(self, reading: LocationReading) -> None:
        self.callback(reading)


def as_sink(target) -> LocationSink:
    """Return ``target`` as a sink, wrapping plain callables."""
    if isinstance(target, LocationSink):
        return target
    if callable(target):
        return CallbackSink(target)
    raise TypeError(f"Expected a callable or an object with deliver(), got {type(target).__name__}")


@dataclass(frozen=True)
class MonitorRecord:
    """One registered monitor.

    ``identity`` is only ever compared for equality; the registry never
    dereferences it.
    """

    identity: Hashable
    desired_accuracy: float
    executor: Executor
    sink: LocationSink


class MonitorRegistry:
    """
    Ordered collection of monitor records, at most one per identity.

    Not synchronized: the owning coordinator serializes every call together
    with accuracy reconciliation.
    """

    def __init__(self):
        self._records: List[MonitorRecord] = []

    def add(self, record: MonitorRecord) -> None:
        """
        Append a record.

        Raises:
            AlreadyRegisteredError: if a record with the same identity exists
        """
        if self.find(record.identity) is not None:
            raise AlreadyRegisteredError()
        self._records.append(record)

    def remove(self, identity: Hashable) -> int:
        """Remove every record matching ``identity`` and return how many were removed."""
        before = len(self._records)
        self._records = [r for r in self._records if r.identity != identity]
        return before - len(self._records)

    def find(self, identity: Hashable) -> Optional[MonitorRecord]:
        for record in self._records:
            if record.identity == identity:
                return record
        return None

    def count(self) -> int:
        return len(self._records)

    def snapshot(self) -> Tuple[MonitorRecord, ...]:
        """Immutable copy of the current records, in registration order."""
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[MonitorRecord]:
        return iter(self.snapshot())

    def __contains__(self, identity) -> bool:
        return self.find(identity) is not None
