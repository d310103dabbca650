"""
app/schemas package marker.
"""

from app.schemas.price_monitoring import (
    CycleSummaryResponse,
    PriceAlertResponse,
    TargetOutcomeResponse,
    UncontestedTargetResponse,
)

__all__ = [
    "CycleSummaryResponse",
    "PriceAlertResponse",
    "TargetOutcomeResponse",
    "UncontestedTargetResponse",
]
