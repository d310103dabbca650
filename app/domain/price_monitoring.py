"""
app/domain/price_monitoring.py

Domain models for the competitor price monitor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from db.models.monitor_target import TargetStatus


class CycleState:
    """
    States of one crawl cycle, in the order a cycle walks through them.
    """

    IDLE = "idle"
    RUNNING = "running"
    FETCHING = "fetching"
    PARSING = "parsing"
    RECONCILING = "reconciling"
    SUCCESS = "success"
    ERROR = "error"
    PACING = "pacing"
    DONE = "done"


class CycleStatus:
    SKIPPED = "skipped"
    IDLE = "idle"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Target:
    """
    A monitored product page plus its crawl-health metadata.
    """

    id: int
    url: str
    description: str = ""
    status: str = TargetStatus.NEVER_RUN
    last_update_at: datetime | None = None
    sku: str | None = None
    cost: Decimal | None = None


@dataclass(frozen=True)
class SellerListing:
    """
    One (seller, price) pair extracted from a product page.
    """

    seller: str
    price: Decimal


@dataclass(frozen=True)
class ReconcileResult:
    target_id: int
    product_id: str
    upserted: int
    removed_sellers: tuple[str, ...] = ()
    sentinel_zeroed: bool = False


@dataclass(frozen=True)
class TargetOutcome:
    """
    Result of processing one target inside a cycle.
    """

    target_id: int
    url: str
    status: str
    listings: int = 0
    removed_sellers: tuple[str, ...] = ()
    sentinel_zeroed: bool = False
    error_type: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class CycleSummary:
    """
    End-of-cycle summary, used for logs and by the CLI.
    """

    status: str
    started_at: datetime
    finished_at: datetime
    outcomes: list[TargetOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == TargetStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == TargetStatus.ERROR)


@dataclass(frozen=True)
class NewTarget:
    """
    Target candidate produced by catalog seeding, before persistence.
    """

    url: str
    description: str
    sku: str | None = None
    cost: Decimal | None = None


@dataclass(frozen=True)
class TargetPriceSnapshot:
    """
    Current stored prices for one target, as read by the alert analysis.
    """

    target_id: int
    url: str
    description: str
    sku: str | None
    cost: Decimal | None
    product_id: str | None
    prices: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceAlert:
    """
    A target whose cheapest competitor undercuts the operator's own price.
    """

    target_id: int
    sku: str | None
    description: str
    url: str
    product_id: str | None
    own_price: Decimal
    own_price_gross: Decimal
    lowest_price: Decimal
    lowest_seller: str
    suggested_price: Decimal
    current_margin: Decimal | None
    suggested_margin: Decimal | None
    cost: Decimal | None = None
