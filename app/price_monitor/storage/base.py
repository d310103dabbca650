"""
Storage interfaces for crawl targets and price observations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime

from app.domain.price_monitoring import NewTarget, SellerListing, Target, TargetPriceSnapshot


class TargetStore(ABC):
    """
    Targets to revisit, with their crawl-health metadata.
    """

    @abstractmethod
    def select_due(self, *, stale_before: datetime) -> list[Target]:
        """
        Targets not in SUCCESS, never updated, or last updated before `stale_before`,
        ordered by last_update_at ascending with never-updated targets first.
        """

    @abstractmethod
    def update_status(self, *, target_id: int, status: str, updated_at: datetime) -> None:
        """
        Persist the outcome of one crawl attempt.
        """

    @abstractmethod
    def known_keys(self) -> tuple[set[str], set[str]]:
        """
        Return (urls, skus) already registered.
        """

    @abstractmethod
    def add_targets(self, targets: Sequence[NewTarget]) -> int:
        """
        Insert new targets in one transaction and return how many were added.
        """


class ObservationStore(ABC):
    """
    Current per-seller prices, unique by (product_id, seller).
    """

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """
        All-or-nothing scope for the writes of one target.
        """

    @abstractmethod
    def upsert(
        self,
        *,
        target_id: int,
        product_id: str,
        listings: Iterable[SellerListing],
    ) -> int:
        """
        Insert listings keyed by (product_id, seller); on conflict overwrite price only.
        """

    @abstractmethod
    def sellers_for_target(self, target_id: int) -> set[str]:
        """
        Sellers currently stored for the target.
        """

    @abstractmethod
    def delete_sellers(self, *, target_id: int, sellers: Iterable[str]) -> int:
        """
        Delete the target's rows for the given sellers.
        """

    @abstractmethod
    def zero_out_seller(self, *, target_id: int, seller: str) -> int:
        """
        Set the stored price of one seller to 0, keeping its row.
        """

    @abstractmethod
    def price_snapshots(self) -> list[TargetPriceSnapshot]:
        """
        Every target with its currently stored prices by seller.
        """


@dataclass(frozen=True)
class MonitorStorage:
    """
    Stores bound to one storage connection, valid for one crawl cycle.
    """

    targets: TargetStore
    observations: ObservationStore
