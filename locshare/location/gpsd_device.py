"""gpsd-backed location device.

Polls a GPS receiver via gpsd/gpspipe while started and reports each
position fix as a location reading.
"""

import json
import subprocess
import threading
import time
from typing import Optional

from locshare.location.device import AbstractLocationDevice, AuthorizationStatus
from locshare.location.reading import LocationReading
from locshare.logging import LOCSHARE_LOGGER


class GpsdLocationDevice(AbstractLocationDevice):
    """
    Location device that queries gpsd using gpspipe from a background thread.

    gpsd has no permission model, so the device always reports
    AUTHORIZED_ALWAYS and permission requests are no-ops.
    """

    def __init__(
        self,
        command: str = "gpspipe",
        poll_interval_seconds: float = 10.0,
        message_count: int = 10,
    ):
        """
        Initialize gpsd device. No thread is started until start_updating_location().

        Args:
            command: gpspipe executable name or path
            poll_interval_seconds: Seconds between gpsd queries while running
            message_count: Number of gpsd JSON messages to read per query
        """
        super().__init__()
        self.command = command
        self.poll_interval_seconds = poll_interval_seconds
        self.message_count = message_count

        # Thread control
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def location_services_enabled(self) -> bool:
        """
        Check if gpsd is reachable (gpspipe command exists).

        Returns:
            True if gpspipe command is available, False otherwise.
        """
        try:
            result = subprocess.run(
                ["which", self.command],
                capture_output=True,
                timeout=2,
            )
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    def authorization_status(self) -> AuthorizationStatus:
        return AuthorizationStatus.AUTHORIZED_ALWAYS

    def request_when_in_use_authorization(self) -> None:
        LOCSHARE_LOGGER.debug("gpsd requires no location permission")

    def request_always_authorization(self) -> None:
        LOCSHARE_LOGGER.debug("gpsd requires no location permission")

    def start_updating_location(self) -> None:
        """Start the gpsd polling thread."""
        if self._thread is not None and self._thread.is_alive():
            LOCSHARE_LOGGER.warning("gpsd device already running")
            return

        # Each polling thread watches its own event, so an old thread that has
        # not exited yet cannot be revived by a restart
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._poll_loop, args=(self._stop_event,), name="locshare-gpsd", daemon=True
        )
        self._thread.start()
        LOCSHARE_LOGGER.info(
            f"gpsd device started (poll interval: {self.poll_interval_seconds}s, "
            f"desired accuracy: {self.desired_accuracy}m)"
        )

    def stop_updating_location(self) -> None:
        """Stop the gpsd polling thread."""
        if self._thread is None:
            return

        LOCSHARE_LOGGER.info("Stopping gpsd device...")
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=5.0)
        self._thread = None
        LOCSHARE_LOGGER.info("gpsd device stopped")

    def _poll_loop(self, stop_event: threading.Event) -> None:
        """Main polling loop (runs in background thread)."""
        while not stop_event.is_set():
            self._poll_once()

            if stop_event.wait(timeout=self.poll_interval_seconds):
                break

    def _poll_once(self) -> None:
        """Perform a single gpsd query and report the reading, if any."""
        try:
            reading = self._query_gpsd()
        except Exception as e:
            LOCSHARE_LOGGER.error(f"gpsd poll failed: {e}", exc_info=True)
            return

        if reading is None:
            LOCSHARE_LOGGER.debug("gpsd position unavailable")
            return

        self._emit_locations([reading])

    def _query_gpsd(self) -> Optional[LocationReading]:
        """
        Query gpsd for the current position using gpspipe.

        Returns:
            LocationReading with position and error estimate, or None if unavailable.
        """
        try:
            # Request several messages so a TPV (position) report is included
            result = subprocess.run(
                [self.command, "-w", "-n", str(self.message_count)],
                capture_output=True,
                timeout=5,
                text=True,
            )
        except (FileNotFoundError, OSError, subprocess.TimeoutExpired):
            # gpspipe not available or gpsd not running
            return None

        if result.returncode != 0:
            return None

        return parse_gpspipe_output(result.stdout)


def parse_gpspipe_output(output: str) -> Optional[LocationReading]:
    """
    Extract the last position from gpspipe JSON lines.

    Args:
        output: Raw stdout of ``gpspipe -w``

    Returns:
        LocationReading, or None if no TPV message carried a 2D/3D position.
    """
    latitude = longitude = altitude = eph = None

    for line in output.strip().split("\n"):
        if not line:
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue

        if data.get("class") != "TPV" or data.get("mode", 0) < 2:
            continue

        if "lat" in data and "lon" in data:
            latitude = data["lat"]
            longitude = data["lon"]
            altitude = data.get("altHAE", data.get("alt"))
            eph = data.get("eph")

    if latitude is None or longitude is None:
        return None

    return LocationReading(
        latitude=latitude,
        longitude=longitude,
        altitude=altitude,
        horizontal_accuracy=eph,
        timestamp=time.time(),
    )
