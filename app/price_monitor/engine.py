"""
Price monitor crawl engine.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import datetime, timedelta

from app.domain.price_monitoring import (
    CycleState,
    CycleStatus,
    CycleSummary,
    Target,
    TargetOutcome,
)
from app.price_monitor.errors import PriceMonitorError, StorageError
from app.price_monitor.fetcher import PageFetcher
from app.price_monitor.logging_utils import log_event, timed_event
from app.price_monitor.pacer import Pacer
from app.price_monitor.parsing import ListingParser
from app.price_monitor.reconciler import Reconciler
from app.price_monitor.run_guard import RunGuard, process_run_guard
from app.price_monitor.selector import TargetSelector, utc_now
from app.price_monitor.status_tracker import StatusTracker
from app.price_monitor.storage.base import MonitorStorage
from db.models.monitor_target import TargetStatus

logger = logging.getLogger(__name__)

StorageFactory = Callable[[], AbstractContextManager[MonitorStorage]]


class PriceMonitorEngine:
    """
    Runs crawl cycles: select due targets, then fetch, parse, reconcile and
    record each one in turn, pausing between targets.

    One storage connection is opened per cycle. A failure inside a target,
    including its SUCCESS status write, is recorded as ERROR on that target
    and the cycle moves on. Failing to open storage, to select targets or to
    write the ERROR status itself aborts the cycle.
    """

    def __init__(
        self,
        *,
        storage_factory: StorageFactory,
        fetcher: PageFetcher,
        parser: ListingParser,
        pacer: Pacer,
        sentinel_seller: str,
        stale_threshold: timedelta,
        guard: RunGuard | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage_factory = storage_factory
        self._fetcher = fetcher
        self._parser = parser
        self._pacer = pacer
        self._sentinel_seller = sentinel_seller
        self._stale_threshold = stale_threshold
        self._guard = guard or process_run_guard()
        self._clock = clock
        self._state = CycleState.IDLE

    @property
    def state(self) -> str:
        return self._state

    def run_cycle(self) -> CycleSummary:
        started_at = self._clock()
        with self._guard.hold() as acquired:
            if not acquired:
                log_event(
                    logger,
                    logging.INFO,
                    "price_monitor_cycle_skipped",
                    reason="already_running",
                )
                return CycleSummary(
                    status=CycleStatus.SKIPPED,
                    started_at=started_at,
                    finished_at=self._clock(),
                )

            self._transition(CycleState.RUNNING)
            try:
                with timed_event(logger, "price_monitor_cycle") as cycle_fields:
                    with self._storage_factory() as storage:
                        outcomes = self._run_targets(storage)
                    cycle_fields["targets"] = len(outcomes)
                    cycle_fields["failed"] = sum(
                        1 for outcome in outcomes if outcome.status == TargetStatus.ERROR
                    )
            finally:
                self._transition(CycleState.IDLE)

        return CycleSummary(
            status=CycleStatus.COMPLETED if outcomes else CycleStatus.IDLE,
            started_at=started_at,
            finished_at=self._clock(),
            outcomes=outcomes,
        )

    def _run_targets(self, storage: MonitorStorage) -> list[TargetOutcome]:
        selector = TargetSelector(store=storage.targets, clock=self._clock)
        targets = selector.select_targets(self._stale_threshold)
        if not targets:
            log_event(logger, logging.INFO, "price_monitor_no_due_targets")
            self._transition(CycleState.DONE)
            return []

        log_event(logger, logging.INFO, "price_monitor_targets_selected", count=len(targets))
        tracker = StatusTracker(store=storage.targets, clock=self._clock)
        reconciler = Reconciler(
            store=storage.observations,
            sentinel_seller=self._sentinel_seller,
        )

        outcomes: list[TargetOutcome] = []
        for target in targets:
            outcomes.append(self._process_target(target, tracker=tracker, reconciler=reconciler))
            self._transition(CycleState.PACING)
            self._pacer.wait()

        self._transition(CycleState.DONE)
        return outcomes

    def _process_target(
        self,
        target: Target,
        *,
        tracker: StatusTracker,
        reconciler: Reconciler,
    ) -> TargetOutcome:
        try:
            self._transition(CycleState.FETCHING)
            page = self._fetcher.fetch(target.url)

            self._transition(CycleState.PARSING)
            product_id = self._parser.product_id(target)
            listings = self._parser.parse(page, target)

            self._transition(CycleState.RECONCILING)
            result = reconciler.reconcile(target, product_id, listings)
            tracker.mark_success(target)
        except Exception as exc:  # noqa: BLE001
            return self._record_failure(target, exc, tracker=tracker)

        self._transition(CycleState.SUCCESS)
        log_event(
            logger,
            logging.INFO,
            "price_monitor_target_updated",
            target_id=target.id,
            description=target.description,
            listings=len(listings),
            removed_sellers=list(result.removed_sellers),
            sentinel_zeroed=result.sentinel_zeroed,
        )
        return TargetOutcome(
            target_id=target.id,
            url=target.url,
            status=TargetStatus.SUCCESS,
            listings=len(listings),
            removed_sellers=result.removed_sellers,
            sentinel_zeroed=result.sentinel_zeroed,
        )

    def _record_failure(
        self,
        target: Target,
        exc: Exception,
        *,
        tracker: StatusTracker,
    ) -> TargetOutcome:
        expected = isinstance(exc, PriceMonitorError)
        log_event(
            logger,
            logging.ERROR,
            "price_monitor_target_failed",
            target_id=target.id,
            url=target.url,
            error_type=type(exc).__name__,
            error=str(exc),
            stage=self._state,
        )
        if not expected:
            logger.exception("Unexpected failure while processing target=%s", target.id)

        try:
            tracker.mark_error(target)
        except StorageError:
            log_event(
                logger,
                logging.CRITICAL,
                "price_monitor_status_write_failed",
                target_id=target.id,
            )
            raise
        self._transition(CycleState.ERROR)
        return TargetOutcome(
            target_id=target.id,
            url=target.url,
            status=TargetStatus.ERROR,
            error_type=type(exc).__name__,
            error=str(exc),
        )

    def _transition(self, state: str) -> None:
        logger.debug("price monitor state %s -> %s", self._state, state)
        self._state = state
