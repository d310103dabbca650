"""
app/services package marker.
"""

from app.services.price_alert_service import PriceAlertService
from app.services.price_monitor_service import (
    PriceMonitorService,
    get_price_monitor_service,
    run_price_monitor_cycle,
)

__all__ = [
    "PriceAlertService",
    "PriceMonitorService",
    "get_price_monitor_service",
    "run_price_monitor_cycle",
]
