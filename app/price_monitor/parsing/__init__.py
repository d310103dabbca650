"""
Listing parser exports.
"""

from app.price_monitor.parsing.base import ListingParser
from app.price_monitor.parsing.madeira_parser import MadeiraMadeiraListingParser
from app.price_monitor.parsing.prices import parse_brl_price

__all__ = ["ListingParser", "MadeiraMadeiraListingParser", "parse_brl_price"]
