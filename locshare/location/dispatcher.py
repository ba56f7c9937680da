"""Fan-out of device readings to registered monitors."""

from typing import Sequence

from locshare.location.monitor_registry import MonitorRecord
from locshare.location.reading import LocationReading
from locshare.logging import LOCSHARE_LOGGER


class UpdateDispatcher:
    """Hands every reading to every monitor on the monitor's own executor."""

    def dispatch(self, readings: Sequence[LocationReading], records: Sequence[MonitorRecord]) -> int:
        """
        Submit each reading to each record's executor, in device order.

        Fire-and-forget: never waits for a sink to run. ``records`` must be a
        snapshot so each record gets every reading of the batch or none of it.

        Args:
            readings: Readings in the order the device produced them
            records: Registry snapshot taken before fan-out

        Returns:
            Number of deliveries scheduled.
        """
        scheduled = 0
        for reading in readings:
            for record in records:
                try:
                    record.executor.submit(_deliver, record, reading)
                    scheduled += 1
                except RuntimeError as e:
                    # Executor already shut down
                    LOCSHARE_LOGGER.warning(f"Could not schedule location update for monitor {record.identity!r}: {e}")
        return scheduled


def _deliver(record: MonitorRecord, reading: LocationReading) -> None:
    """Runs on the monitor's executor."""
    try:
        record.sink.deliver(reading)
    except Exception as e:
        LOCSHARE_LOGGER.error(f"Location monitor {record.identity!r} callback failed: {e}", exc_info=True)
