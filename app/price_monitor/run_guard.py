"""
Process-wide single-flight guard for crawl cycles.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class RunGuard:
    """
    Lock-backed holder allowing at most one crawl cycle at a time.

    A caller that cannot acquire the guard is expected to skip its cycle,
    never to wait for the running one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def is_held(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """
        Yield True when the guard was acquired, False when another cycle holds it.
        An acquired guard is released on every exit path.
        """

        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()


_PROCESS_GUARD = RunGuard()


def process_run_guard() -> RunGuard:
    """Return the guard shared by every engine in this process."""
    return _PROCESS_GUARD
