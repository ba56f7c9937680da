"""Accuracy constants, in meters. Lower values request a more precise fix."""

ACCURACY_BEST_FOR_NAVIGATION = -2.0
ACCURACY_BEST = -1.0
ACCURACY_NEAREST_TEN_METERS = 10.0
ACCURACY_HUNDRED_METERS = 100.0
ACCURACY_KILOMETER = 1000.0
ACCURACY_THREE_KILOMETERS = 3000.0

# Applied to the device whenever no monitor is registered
DEFAULT_FALLBACK_ACCURACY = ACCURACY_THREE_KILOMETERS

ERROR_DOMAIN = "locshare.location"
