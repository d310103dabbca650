"""
Environment loader for price monitor settings.
"""

from __future__ import annotations

import json
import os
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from db.config import load_env_files

from app.price_monitor.config.models import PriceMonitorSettings


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_decimal_env(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def _get_exact_str_env(name: str, default: str) -> str:
    # No stripping or case folding: the value is an identity compared verbatim.
    raw = os.getenv(name)
    return raw if raw else default


def _get_headers_env(name: str) -> dict[str, str]:
    raw = os.getenv(name)
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {}
    if not isinstance(parsed, dict):
        return {}
    return {
        str(key).strip(): str(value).strip()
        for key, value in parsed.items()
        if str(key).strip() and str(value).strip()
    }


@lru_cache(maxsize=1)
def get_price_monitor_settings() -> PriceMonitorSettings:
    """
    Return cached price monitor settings from environment variables.
    """

    load_env_files()
    commission_factor = _get_decimal_env("PRICE_MONITOR_COMMISSION_FACTOR", Decimal("0.8"))
    if commission_factor <= 0 or commission_factor > 1:
        commission_factor = Decimal("0.8")

    return PriceMonitorSettings(
        stale_threshold=timedelta(
            minutes=max(1, _get_int_env("PRICE_MONITOR_STALE_THRESHOLD_MINUTES", 120))
        ),
        pacing_seconds=max(0.0, _get_float_env("PRICE_MONITOR_PACING_SECONDS", 5.0)),
        sentinel_seller=_get_exact_str_env("PRICE_MONITOR_SENTINEL_SELLER", "Moveis Magazine"),
        timeout_seconds=max(1.0, _get_float_env("PRICE_MONITOR_TIMEOUT_SECONDS", 15.0)),
        user_agent=_get_str_env("PRICE_MONITOR_USER_AGENT", "PriceMonitorBot/1.0"),
        parser=_get_str_env("PRICE_MONITOR_PARSER", "madeiramadeira"),
        interval_minutes=max(1, _get_int_env("PRICE_MONITOR_INTERVAL_MINUTES", 20)),
        timezone=_get_str_env("PRICE_MONITOR_TIMEZONE", "America/Sao_Paulo"),
        commission_factor=commission_factor,
        headers=_get_headers_env("PRICE_MONITOR_HEADERS"),
    )
