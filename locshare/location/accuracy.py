"""Accuracy reconciliation across registered monitors."""

from typing import Iterable

from locshare.location.monitor_registry import MonitorRecord


def reconcile_accuracy(records: Iterable[MonitorRecord], fallback: float) -> float:
    """
    Compute the single device accuracy that satisfies every monitor.

    Args:
        records: Currently registered monitors
        fallback: Coarsest supported accuracy, used when there are no monitors

    Returns:
        The most precise (lowest) desired accuracy, or ``fallback`` if empty.
    """
    return min((r.desired_accuracy for r in records), default=fallback)
