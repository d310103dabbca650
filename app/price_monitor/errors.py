"""
Exception taxonomy for the price monitor crawl.
"""

from __future__ import annotations


class PriceMonitorError(Exception):
    """Base exception for price monitor failures."""


class NetworkError(PriceMonitorError):
    """Raised when a product page cannot be fetched."""


class ParseError(PriceMonitorError):
    """Raised when a page does not match the listing markup or yields no listing."""


class StorageError(PriceMonitorError):
    """Raised when reading or writing the target/observation stores fails."""
