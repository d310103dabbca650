"""
Listing parser abstraction.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from bs4 import BeautifulSoup

from app.domain.price_monitoring import SellerListing, Target
from app.price_monitor.errors import ParseError

PRODUCT_ID_REGEX = re.compile(r"-(\d+)\.html")


class ListingParser(ABC):
    """
    Extracts the seller listings of one product page.

    Subclasses implement the markup contract of a marketplace; `parse` wraps
    them with the fail-closed rules shared by every format.
    """

    name = "base"

    def parse(self, page_content: str, target: Target) -> frozenset[SellerListing]:
        """
        Return the (seller, price) listings found on the page.

        Raises ParseError when the markup does not match or yields no listing.
        """

        try:
            soup = BeautifulSoup(page_content, "html.parser")
            listings = self.extract_listings(soup=soup, target=target)
        except ParseError:
            raise
        except Exception as exc:
            raise ParseError(f"target={target.id} page could not be parsed: {exc}") from exc

        if not listings:
            raise ParseError(f"target={target.id} page has no listing with a valid price")
        return frozenset(lowest_price_per_seller(listings))

    def product_id(self, target: Target) -> str:
        """
        Marketplace product id for the target, taken from its URL.
        """

        match = PRODUCT_ID_REGEX.search(target.url)
        if match is None:
            raise ParseError(f"target={target.id} url has no product id: {target.url}")
        return match.group(1)

    @abstractmethod
    def extract_listings(
        self,
        *,
        soup: BeautifulSoup,
        target: Target,
    ) -> list[SellerListing]:
        """
        Extract listings from one parsed page. Blocks without a valid price are skipped.
        """


def lowest_price_per_seller(listings: list[SellerListing]) -> list[SellerListing]:
    best: dict[str, SellerListing] = {}
    for listing in listings:
        current = best.get(listing.seller)
        if current is None or listing.price < current.price:
            best[listing.seller] = listing
    return list(best.values())
