"""
Config helpers for the price monitor.
"""

from app.price_monitor.config.loader import get_price_monitor_settings
from app.price_monitor.config.models import PriceMonitorSettings

__all__ = ["PriceMonitorSettings", "get_price_monitor_settings"]
