"""
Price monitor configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal


@dataclass(frozen=True)
class PriceMonitorSettings:
    """
    Runtime settings for the price monitor crawl and its schedule.
    """

    stale_threshold: timedelta = timedelta(hours=2)
    pacing_seconds: float = 5.0
    sentinel_seller: str = "Moveis Magazine"
    timeout_seconds: float = 15.0
    user_agent: str = "PriceMonitorBot/1.0"
    parser: str = "madeiramadeira"
    interval_minutes: int = 20
    timezone: str = "America/Sao_Paulo"
    commission_factor: Decimal = Decimal("0.8")
    headers: dict[str, str] = field(default_factory=dict)
