"""
app/domain package marker.
"""

from app.domain.price_monitoring import (
    CycleState,
    CycleStatus,
    CycleSummary,
    NewTarget,
    PriceAlert,
    ReconcileResult,
    SellerListing,
    Target,
    TargetOutcome,
    TargetPriceSnapshot,
)

__all__ = [
    "CycleState",
    "CycleStatus",
    "CycleSummary",
    "NewTarget",
    "PriceAlert",
    "ReconcileResult",
    "SellerListing",
    "Target",
    "TargetOutcome",
    "TargetPriceSnapshot",
]
