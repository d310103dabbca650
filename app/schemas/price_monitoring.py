"""
app/schemas/price_monitoring.py

Serialization schemas for price monitor results.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.domain.price_monitoring import CycleSummary, PriceAlert, TargetPriceSnapshot


class TargetOutcomeResponse(BaseModel):
    target_id: int
    url: str
    status: str
    listings: int = Field(..., ge=0)
    removed_sellers: list[str] = Field(default_factory=list)
    sentinel_zeroed: bool = False
    error_type: str | None = None
    error: str | None = None


class CycleSummaryResponse(BaseModel):
    """
    Summary of one crawl cycle.
    """

    status: str
    started_at: datetime
    finished_at: datetime
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    outcomes: list[TargetOutcomeResponse] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: CycleSummary) -> "CycleSummaryResponse":
        return cls(
            status=summary.status,
            started_at=summary.started_at,
            finished_at=summary.finished_at,
            succeeded=summary.succeeded,
            failed=summary.failed,
            outcomes=[
                TargetOutcomeResponse(
                    target_id=outcome.target_id,
                    url=outcome.url,
                    status=outcome.status,
                    listings=outcome.listings,
                    removed_sellers=list(outcome.removed_sellers),
                    sentinel_zeroed=outcome.sentinel_zeroed,
                    error_type=outcome.error_type,
                    error=outcome.error,
                )
                for outcome in summary.outcomes
            ],
        )


class PriceAlertResponse(BaseModel):
    """
    One target undercut by a competitor.
    """

    target_id: int
    sku: str | None = None
    description: str
    url: str
    product_id: str | None = None
    cost: Decimal | None = None
    own_price: Decimal
    own_price_gross: Decimal
    lowest_price: Decimal
    lowest_seller: str
    suggested_price: Decimal
    current_margin: Decimal | None = None
    suggested_margin: Decimal | None = None

    @classmethod
    def from_alert(cls, alert: PriceAlert) -> "PriceAlertResponse":
        return cls(
            target_id=alert.target_id,
            sku=alert.sku,
            description=alert.description,
            url=alert.url,
            product_id=alert.product_id,
            cost=alert.cost,
            own_price=alert.own_price,
            own_price_gross=alert.own_price_gross,
            lowest_price=alert.lowest_price,
            lowest_seller=alert.lowest_seller,
            suggested_price=alert.suggested_price,
            current_margin=alert.current_margin,
            suggested_margin=alert.suggested_margin,
        )


class UncontestedTargetResponse(BaseModel):
    target_id: int
    sku: str | None = None
    description: str
    url: str

    @classmethod
    def from_snapshot(cls, snapshot: TargetPriceSnapshot) -> "UncontestedTargetResponse":
        return cls(
            target_id=snapshot.target_id,
            sku=snapshot.sku,
            description=snapshot.description,
            url=snapshot.url,
        )
