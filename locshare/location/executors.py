"""Scheduling contexts on which monitor callbacks run.

Any ``concurrent.futures.Executor`` can be bound to a monitor. Readings for
a single monitor arrive in device order only if its executor runs work
serially; the default main executor does.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional

from locshare.logging import LOCSHARE_LOGGER

_main_executor: Optional[ThreadPoolExecutor] = None
_main_executor_lock = threading.Lock()


class InlineExecutor(Executor):
    """Runs submitted work immediately on the submitting thread."""

    def __init__(self):
        self._shutdown = False
        self._lock = threading.Lock()

    def submit(self, fn, /, *args, **kwargs) -> Future:
        with self._lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new futures after shutdown")

        future: Future = Future()
        if not future.set_running_or_notify_cancel():
            return future
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        with self._lock:
            self._shutdown = True


def main_executor(thread_name: str = "locshare-main") -> ThreadPoolExecutor:
    """
    Return the process-wide default executor, creating it on first use.

    A single worker thread keeps callbacks serialized, so every monitor bound
    to it sees readings in the order the device produced them. It lives for
    the lifetime of the process.

    Args:
        thread_name: Thread name prefix, only used when the executor is created

    Returns:
        The shared single-threaded executor.
    """
    global _main_executor
    with _main_executor_lock:
        if _main_executor is None:
            _main_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=thread_name)
            LOCSHARE_LOGGER.debug(f"Main executor created ({thread_name})")
        return _main_executor
