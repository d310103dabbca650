"""
Fixed inter-target delay for outbound crawl requests.
"""

from __future__ import annotations

import time
from collections.abc import Callable


class Pacer:
    """
    Sleeps a fixed delay after each target iteration.

    The delay does not adapt to response times or to the number of targets
    selected; it bounds the request rate against the marketplace.
    """

    def __init__(
        self,
        *,
        delay_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._delay_seconds = max(0.0, delay_seconds)
        self._sleep = sleep

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    def wait(self) -> None:
        if self._delay_seconds > 0:
            self._sleep(self._delay_seconds)
