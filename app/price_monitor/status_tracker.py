"""
Per-target crawl outcome recording.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from app.domain.price_monitoring import Target
from app.price_monitor.selector import utc_now
from app.price_monitor.storage.base import TargetStore
from db.models.monitor_target import TargetStatus


class StatusTracker:
    """
    Writes SUCCESS/ERROR plus the attempt time straight to the target store.
    """

    def __init__(
        self,
        *,
        store: TargetStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    def mark_success(self, target: Target) -> None:
        self._store.update_status(
            target_id=target.id,
            status=TargetStatus.SUCCESS,
            updated_at=self._clock(),
        )

    def mark_error(self, target: Target) -> None:
        self._store.update_status(
            target_id=target.id,
            status=TargetStatus.ERROR,
            updated_at=self._clock(),
        )
