"""Location reading value type."""

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class LocationReading:
    """A single position report produced by a location device."""

    latitude: float  # degrees
    longitude: float  # degrees
    altitude: Optional[float] = None  # meters
    horizontal_accuracy: Optional[float] = None  # meters, estimated error
    timestamp: float = field(default_factory=time.time)
