"""
Target selection by crawl priority.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from app.domain.price_monitoring import Target
from app.price_monitor.storage.base import TargetStore
from db.models.monitor_target import TargetStatus

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_due(target: Target, *, stale_before: datetime) -> bool:
    """
    A target is due when it has not succeeded, never ran, or went stale.
    """

    if target.status != TargetStatus.SUCCESS:
        return True
    if target.last_update_at is None:
        return True
    return target.last_update_at < stale_before


def priority_key(target: Target) -> tuple[datetime, int]:
    """
    Sort key: oldest update first, never-updated targets ahead of everything.
    """

    return (target.last_update_at or _EARLIEST, target.id)


class TargetSelector:
    def __init__(
        self,
        *,
        store: TargetStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    def select_targets(self, stale_threshold: timedelta) -> list[Target]:
        """
        Targets needing a crawl, highest priority first.

        Store backends may return a superset; the predicate and ordering
        applied here are authoritative.
        """

        stale_before = self._clock() - stale_threshold
        candidates = self._store.select_due(stale_before=stale_before)
        due = [target for target in candidates if is_due(target, stale_before=stale_before)]
        return sorted(due, key=priority_key)
