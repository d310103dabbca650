"""
tests/test_engine.py

Pytest unit tests for PriceMonitorEngine run cycles.

All tests use in-memory stores, canned pages and a recording sleep, so no
network, database or real delay is involved.

Coverage
--------
- Successful cycle: reconcile, status and pacing per target
- Failure isolation across targets
- Empty selection: no fetch, no pacing
- Single-flight: overlapping cycles are skipped
- Fatal storage failures release the run guard
- State machine returns to idle
"""

from __future__ import annotations

import threading
from datetime import timedelta
from decimal import Decimal

import pytest

from app.domain.price_monitoring import CycleState, CycleStatus
from app.price_monitor.engine import PriceMonitorEngine
from app.price_monitor.errors import NetworkError, StorageError
from app.price_monitor.pacer import Pacer
from app.price_monitor.parsing import MadeiraMadeiraListingParser
from app.price_monitor.run_guard import RunGuard
from db.models.monitor_target import TargetStatus
from tests.support import (
    NOW,
    SENTINEL,
    FakeFetcher,
    InMemoryObservationStore,
    InMemoryTargetStore,
    RecordingSleep,
    StorageFactory,
    fixed_clock,
    listing_page,
    make_target,
)

PACING = 5.0


def build_engine(
    factory: StorageFactory,
    fetcher: object,
    *,
    sleep: RecordingSleep | None = None,
    guard: RunGuard | None = None,
) -> PriceMonitorEngine:
    return PriceMonitorEngine(
        storage_factory=factory,
        fetcher=fetcher,  # type: ignore[arg-type]
        parser=MadeiraMadeiraListingParser(),
        pacer=Pacer(delay_seconds=PACING, sleep=sleep or RecordingSleep()),
        sentinel_seller=SENTINEL,
        stale_threshold=timedelta(hours=2),
        guard=guard or RunGuard(),
        clock=fixed_clock,
    )


@pytest.fixture()
def targets() -> InMemoryTargetStore:
    return InMemoryTargetStore([make_target(1), make_target(2), make_target(3)])


@pytest.fixture()
def factory(
    targets: InMemoryTargetStore,
    observation_store: InMemoryObservationStore,
) -> StorageFactory:
    return StorageFactory(targets, observation_store)


# ---------------------------------------------------------------------------
# Successful cycles
# ---------------------------------------------------------------------------


class TestSuccessfulCycle:
    def test_every_target_reconciled_and_marked_success(
        self,
        targets: InMemoryTargetStore,
        observation_store: InMemoryObservationStore,
        factory: StorageFactory,
    ) -> None:
        pages = {
            target.url: listing_page({"X": "R$ 10,00", SENTINEL: "R$ 12,00"})
            for target in targets.targets.values()
        }
        sleep = RecordingSleep()

        summary = build_engine(factory, FakeFetcher(pages), sleep=sleep).run_cycle()

        assert summary.status == CycleStatus.COMPLETED
        assert summary.succeeded == 3
        assert summary.failed == 0
        assert [target_id for target_id, _ in targets.status_updates] == [1, 2, 3]
        assert all(target.status == TargetStatus.SUCCESS for target in targets.targets.values())
        assert all(target.last_update_at == NOW for target in targets.targets.values())
        assert observation_store.prices_for(2) == {
            "X": Decimal("10.00"),
            SENTINEL: Decimal("12.00"),
        }
        assert sleep.calls == [PACING, PACING, PACING]

    def test_targets_fetched_in_priority_order(self, observation_store: InMemoryObservationStore) -> None:
        stale = make_target(1, status=TargetStatus.SUCCESS, last_update_at=NOW - timedelta(hours=5))
        never = make_target(2)
        fresh = make_target(3, status=TargetStatus.SUCCESS, last_update_at=NOW - timedelta(minutes=1))
        targets = InMemoryTargetStore([stale, never, fresh])
        page = listing_page({"X": "R$ 10,00"})
        fetcher = FakeFetcher({target.url: page for target in (stale, never, fresh)})

        build_engine(StorageFactory(targets, observation_store), fetcher).run_cycle()

        assert fetcher.calls == [never.url, stale.url]

    def test_storage_opened_once_and_closed(self, factory: StorageFactory) -> None:
        build_engine(factory, FakeFetcher({})).run_cycle()

        assert factory.opened == 1
        assert factory.closed == 1


class FlakyStatusStore(InMemoryTargetStore):
    """Fails the first SUCCESS write of target 1 only."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.failed_once = False

    def update_status(self, *, target_id, status, updated_at) -> None:
        if target_id == 1 and status == TargetStatus.SUCCESS and not self.failed_once:
            self.failed_once = True
            raise StorageError("status write timed out")
        super().update_status(target_id=target_id, status=status, updated_at=updated_at)


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


class TestFailureIsolation:
    def test_network_error_marks_only_that_target(
        self,
        targets: InMemoryTargetStore,
        observation_store: InMemoryObservationStore,
        factory: StorageFactory,
    ) -> None:
        t1, t2, t3 = (targets.targets[i] for i in (1, 2, 3))
        observation_store.seed(target_id=2, product_id="1002", prices={"Y": "40"})
        fetcher = FakeFetcher(
            {
                t1.url: listing_page({"X": "R$ 10,00"}),
                t2.url: NetworkError("connection reset"),
                t3.url: listing_page({"Z": "R$ 30,00"}),
            }
        )
        sleep = RecordingSleep()

        summary = build_engine(factory, fetcher, sleep=sleep).run_cycle()

        assert targets.targets[1].status == TargetStatus.SUCCESS
        assert targets.targets[2].status == TargetStatus.ERROR
        assert targets.targets[3].status == TargetStatus.SUCCESS
        assert observation_store.prices_for(2) == {"Y": Decimal("40")}
        assert observation_store.prices_for(3) == {"Z": Decimal("30.00")}
        assert fetcher.calls == [t1.url, t2.url, t3.url]
        assert len(sleep.calls) == 3
        failed = [outcome for outcome in summary.outcomes if outcome.status == TargetStatus.ERROR]
        assert [(o.target_id, o.error_type) for o in failed] == [(2, "NetworkError")]

    def test_parse_error_keeps_previous_observations(
        self,
        targets: InMemoryTargetStore,
        observation_store: InMemoryObservationStore,
        factory: StorageFactory,
    ) -> None:
        observation_store.seed(target_id=1, product_id="1001", prices={"X": "10", SENTINEL: "11"})
        page = "<html><body>Access denied</body></html>"
        fetcher = FakeFetcher({target.url: page for target in targets.targets.values()})

        summary = build_engine(factory, fetcher).run_cycle()

        assert summary.failed == 3
        assert {o.error_type for o in summary.outcomes} == {"ParseError"}
        assert observation_store.prices_for(1) == {"X": Decimal("10"), SENTINEL: Decimal("11")}

    def test_reconcile_storage_error_is_per_target(
        self,
        targets: InMemoryTargetStore,
        observation_store: InMemoryObservationStore,
        factory: StorageFactory,
    ) -> None:
        observation_store.seed(target_id=1, product_id="1001", prices={"Gone": "10"})
        observation_store.fail_delete = True
        fetcher = FakeFetcher(
            {target.url: listing_page({"X": "R$ 10,00"}) for target in targets.targets.values()}
        )

        summary = build_engine(factory, fetcher).run_cycle()

        assert targets.targets[1].status == TargetStatus.ERROR
        assert targets.targets[2].status == TargetStatus.SUCCESS
        assert summary.outcomes[0].error_type == "StorageError"
        assert observation_store.prices_for(1) == {"Gone": Decimal("10")}

    def test_failed_success_write_marks_error_and_continues(
        self,
        observation_store: InMemoryObservationStore,
    ) -> None:
        targets = FlakyStatusStore([make_target(1), make_target(2), make_target(3)])
        factory = StorageFactory(targets, observation_store)
        fetcher = FakeFetcher(
            {target.url: listing_page({"X": "R$ 10,00"}) for target in targets.targets.values()}
        )

        summary = build_engine(factory, fetcher).run_cycle()

        assert fetcher.calls == [targets.targets[i].url for i in (1, 2, 3)]
        assert targets.targets[1].status == TargetStatus.ERROR
        assert targets.targets[2].status == TargetStatus.SUCCESS
        assert targets.targets[3].status == TargetStatus.SUCCESS
        assert summary.outcomes[0].error_type == "StorageError"
        assert summary.succeeded == 2

    def test_unexpected_exception_is_recorded_as_error(
        self,
        targets: InMemoryTargetStore,
        factory: StorageFactory,
    ) -> None:
        fetcher = FakeFetcher(
            {
                targets.targets[1].url: RuntimeError("boom"),
                targets.targets[2].url: listing_page({"X": "R$ 1,00"}),
                targets.targets[3].url: listing_page({"X": "R$ 1,00"}),
            }
        )

        summary = build_engine(factory, fetcher).run_cycle()

        assert summary.outcomes[0].error_type == "RuntimeError"
        assert summary.succeeded == 2


# ---------------------------------------------------------------------------
# Empty selection
# ---------------------------------------------------------------------------


def test_no_due_targets_is_idle_without_fetch_or_pacing(
    observation_store: InMemoryObservationStore,
) -> None:
    fresh = make_target(1, status=TargetStatus.SUCCESS, last_update_at=NOW - timedelta(minutes=10))
    targets = InMemoryTargetStore([fresh])
    fetcher = FakeFetcher({})
    sleep = RecordingSleep()

    summary = build_engine(StorageFactory(targets, observation_store), fetcher, sleep=sleep).run_cycle()

    assert summary.status == CycleStatus.IDLE
    assert summary.outcomes == []
    assert fetcher.calls == []
    assert sleep.calls == []
    assert targets.status_updates == []


# ---------------------------------------------------------------------------
# Single-flight and fatal errors
# ---------------------------------------------------------------------------


class BlockingFetcher:
    def __init__(self, page: str) -> None:
        self.page = page
        self.started = threading.Event()
        self.release = threading.Event()

    def fetch(self, url: str) -> str:
        self.started.set()
        if not self.release.wait(timeout=5):
            raise NetworkError("test fetcher was never released")
        return self.page


class TestSingleFlight:
    def test_overlapping_cycle_is_skipped(
        self,
        targets: InMemoryTargetStore,
        observation_store: InMemoryObservationStore,
    ) -> None:
        guard = RunGuard()
        first_factory = StorageFactory(targets, observation_store)
        second_factory = StorageFactory(targets, observation_store)
        fetcher = BlockingFetcher(listing_page({"X": "R$ 10,00"}))
        first = build_engine(first_factory, fetcher, guard=guard)
        second = build_engine(second_factory, FakeFetcher({}), guard=guard)
        results = []

        worker = threading.Thread(target=lambda: results.append(first.run_cycle()))
        worker.start()
        try:
            assert fetcher.started.wait(timeout=5)
            skipped = second.run_cycle()
        finally:
            fetcher.release.set()
            worker.join(timeout=5)

        assert skipped.status == CycleStatus.SKIPPED
        assert second_factory.opened == 0
        assert results[0].status == CycleStatus.COMPLETED
        assert not guard.is_held

    def test_guard_released_after_cycle(self, factory: StorageFactory) -> None:
        guard = RunGuard()
        engine = build_engine(factory, FakeFetcher({}), guard=guard)

        engine.run_cycle()

        assert not guard.is_held
        assert engine.state == CycleState.IDLE
        assert engine.run_cycle().status == CycleStatus.COMPLETED

    def test_held_guard_skips_without_touching_storage(self, factory: StorageFactory) -> None:
        guard = RunGuard()
        assert guard.try_acquire()

        summary = build_engine(factory, FakeFetcher({}), guard=guard).run_cycle()

        assert summary.status == CycleStatus.SKIPPED
        assert factory.opened == 0
        guard.release()


class TestFatalStorageErrors:
    def test_selection_failure_aborts_and_releases_guard(
        self,
        targets: InMemoryTargetStore,
        factory: StorageFactory,
    ) -> None:
        targets.fail_select = True
        guard = RunGuard()
        engine = build_engine(factory, FakeFetcher({}), guard=guard)

        with pytest.raises(StorageError):
            engine.run_cycle()

        assert not guard.is_held
        assert engine.state == CycleState.IDLE
        assert factory.closed == 1

    def test_error_status_write_failure_aborts_cycle(
        self,
        targets: InMemoryTargetStore,
        factory: StorageFactory,
    ) -> None:
        targets.fail_status_writes = True
        fetcher = FakeFetcher(
            {target.url: listing_page({"X": "R$ 1,00"}) for target in targets.targets.values()}
        )
        guard = RunGuard()

        with pytest.raises(StorageError):
            build_engine(factory, fetcher, guard=guard).run_cycle()

        assert fetcher.calls == [targets.targets[1].url]
        assert not guard.is_held
