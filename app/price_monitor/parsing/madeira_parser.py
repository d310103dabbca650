"""
Listing parser for MadeiraMadeira partner product pages.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from app.domain.price_monitoring import SellerListing, Target
from app.price_monitor.errors import ParseError
from app.price_monitor.parsing.base import ListingParser
from app.price_monitor.parsing.prices import clean_text, parse_brl_price

logger = logging.getLogger(__name__)


class MadeiraMadeiraListingParser(ListingParser):
    """
    Each offer block carries a price span ("R$ ...") and a link to the
    seller's storefront (/lojista/...).
    """

    name = "madeiramadeira"

    DEFAULT_BLOCK_SELECTOR = ".cav--c-gqwkJN"
    DEFAULT_PRICE_SELECTOR = 'span:-soup-contains("R$")'
    DEFAULT_SELLER_SELECTOR = "a[href*='/lojista']"

    def __init__(
        self,
        *,
        block_selector: str = DEFAULT_BLOCK_SELECTOR,
        price_selector: str = DEFAULT_PRICE_SELECTOR,
        seller_selector: str = DEFAULT_SELLER_SELECTOR,
    ) -> None:
        self.block_selector = block_selector
        self.price_selector = price_selector
        self.seller_selector = seller_selector

    def extract_listings(
        self,
        *,
        soup: BeautifulSoup,
        target: Target,
    ) -> list[SellerListing]:
        blocks = soup.select(self.block_selector)
        if not blocks:
            raise ParseError(
                f"target={target.id} listing markup not found selector={self.block_selector!r}"
            )

        listings: list[SellerListing] = []
        skipped = 0
        for block in blocks:
            price_node = block.select_one(self.price_selector)
            seller_node = block.select_one(self.seller_selector)
            if price_node is None or seller_node is None:
                skipped += 1
                continue

            seller = clean_text(seller_node.get_text(" ", strip=True))
            price = parse_brl_price(price_node.get_text("", strip=True))
            if not seller or price is None:
                skipped += 1
                continue
            listings.append(SellerListing(seller=seller, price=price))

        if skipped:
            logger.debug(
                "target=%s skipped %d of %d listing blocks", target.id, skipped, len(blocks)
            )
        return listings
