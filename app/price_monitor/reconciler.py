"""
Reconciles a target's freshly scraped listings against the stored snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.domain.price_monitoring import ReconcileResult, SellerListing, Target
from app.price_monitor.parsing.base import lowest_price_per_seller
from app.price_monitor.storage.base import ObservationStore


class Reconciler:
    """
    Makes the stored rows of a target match its latest listing snapshot.

    The sentinel seller (the operator's own storefront) is never deleted: when
    it is missing from the page its stored price is set to 0 instead.
    """

    def __init__(self, *, store: ObservationStore, sentinel_seller: str) -> None:
        self._store = store
        self._sentinel_seller = sentinel_seller

    @property
    def sentinel_seller(self) -> str:
        return self._sentinel_seller

    def reconcile(
        self,
        target: Target,
        product_id: str,
        observed: Iterable[SellerListing],
    ) -> ReconcileResult:
        # One row per seller: a multi-row ON CONFLICT cannot touch the same key twice.
        listings = lowest_price_per_seller(list(observed))
        observed_sellers = {listing.seller for listing in listings}

        with self._store.atomic():
            upserted = self._store.upsert(
                target_id=target.id,
                product_id=product_id,
                listings=listings,
            )

            stored_sellers = self._store.sellers_for_target(target.id)
            # Exact match: the sentinel identity is case-sensitive.
            gone = sorted(
                seller
                for seller in stored_sellers
                if seller not in observed_sellers and seller != self._sentinel_seller
            )
            if gone:
                self._store.delete_sellers(target_id=target.id, sellers=gone)

            sentinel_zeroed = False
            if self._sentinel_seller not in observed_sellers:
                sentinel_zeroed = (
                    self._store.zero_out_seller(
                        target_id=target.id,
                        seller=self._sentinel_seller,
                    )
                    > 0
                )

        return ReconcileResult(
            target_id=target.id,
            product_id=product_id,
            upserted=upserted,
            removed_sellers=tuple(gone),
            sentinel_zeroed=sentinel_zeroed,
        )
