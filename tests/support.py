"""
In-memory fakes and page builders shared by the price monitor tests.

The stores below are in-memory stand-ins for the PostgreSQL stores; the
observation store keeps the (product_id, seller) uniqueness and rolls back
a failed `atomic()` block the way the database transaction would.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from app.domain.price_monitoring import NewTarget, SellerListing, Target, TargetPriceSnapshot
from app.price_monitor.errors import NetworkError, StorageError
from app.price_monitor.storage.base import MonitorStorage, ObservationStore, TargetStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
SENTINEL = "Moveis Magazine"


def fixed_clock() -> datetime:
    return NOW


def listing_page(listings: dict[str, str]) -> str:
    """Build a product page in the MadeiraMadeira offer markup."""
    blocks = "".join(
        f'<div class="cav--c-gqwkJN">'
        f"<span>{price}</span>"
        f'<a href="/lojista/{index}">{seller}</a>'
        f"</div>"
        for index, (seller, price) in enumerate(listings.items())
    )
    return f"<html><body><main>{blocks}</main></body></html>"


class InMemoryTargetStore(TargetStore):
    def __init__(self, targets: Iterable[Target] = ()) -> None:
        self.targets: dict[int, Target] = {target.id: target for target in targets}
        self.status_updates: list[tuple[int, str]] = []
        self.select_calls = 0
        self.fail_select = False
        self.fail_status_writes = False

    def select_due(self, *, stale_before: datetime) -> list[Target]:
        self.select_calls += 1
        if self.fail_select:
            raise StorageError("select failed")
        return list(self.targets.values())

    def update_status(self, *, target_id: int, status: str, updated_at: datetime) -> None:
        if self.fail_status_writes:
            raise StorageError("status write failed")
        self.targets[target_id] = replace(
            self.targets[target_id],
            status=status,
            last_update_at=updated_at,
        )
        self.status_updates.append((target_id, status))

    def known_keys(self) -> tuple[set[str], set[str]]:
        urls = {target.url for target in self.targets.values()}
        skus = {target.sku for target in self.targets.values() if target.sku}
        return urls, skus

    def add_targets(self, targets: Sequence[NewTarget]) -> int:
        next_id = max(self.targets, default=0) + 1
        for offset, new in enumerate(targets):
            target_id = next_id + offset
            self.targets[target_id] = Target(
                id=target_id,
                url=new.url,
                description=new.description,
                sku=new.sku,
                cost=new.cost,
            )
        return len(targets)


class InMemoryObservationStore(ObservationStore):
    def __init__(self) -> None:
        # (product_id, seller) -> (price, target_id)
        self.rows: dict[tuple[str, str], tuple[Decimal, int]] = {}
        self.fail_delete = False
        self.commits = 0
        self.rollbacks = 0

    def seed(self, *, target_id: int, product_id: str, prices: dict[str, str]) -> None:
        for seller, price in prices.items():
            self.rows[(product_id, seller)] = (Decimal(price), target_id)

    def prices_for(self, target_id: int) -> dict[str, Decimal]:
        return {
            seller: price
            for (_, seller), (price, owner) in self.rows.items()
            if owner == target_id
        }

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = copy.deepcopy(self.rows)
        try:
            yield
        except Exception:
            self.rows = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1

    def upsert(
        self,
        *,
        target_id: int,
        product_id: str,
        listings: Iterable[SellerListing],
    ) -> int:
        count = 0
        for listing in listings:
            key = (product_id, listing.seller)
            existing = self.rows.get(key)
            owner = existing[1] if existing else target_id
            self.rows[key] = (listing.price, owner)
            count += 1
        return count

    def sellers_for_target(self, target_id: int) -> set[str]:
        return set(self.prices_for(target_id))

    def delete_sellers(self, *, target_id: int, sellers: Iterable[str]) -> int:
        if self.fail_delete:
            raise StorageError("delete failed")
        doomed = set(sellers)
        keys = [
            key
            for key, (_, owner) in self.rows.items()
            if owner == target_id and key[1] in doomed
        ]
        for key in keys:
            del self.rows[key]
        return len(keys)

    def zero_out_seller(self, *, target_id: int, seller: str) -> int:
        updated = 0
        for key, (_, owner) in list(self.rows.items()):
            if owner == target_id and key[1] == seller:
                self.rows[key] = (Decimal("0"), owner)
                updated += 1
        return updated

    def price_snapshots(self) -> list[TargetPriceSnapshot]:
        raise NotImplementedError


class FakeFetcher:
    """Serves pages by URL; values that are exceptions are raised instead."""

    def __init__(self, pages: dict[str, str | Exception]) -> None:
        self.pages = pages
        self.calls: list[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise NetworkError(f"no page for {url}")
        if isinstance(page, Exception):
            raise page
        return page


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class StorageFactory:
    """Context-manager factory counting how often the cycle storage is opened and closed."""

    def __init__(self, targets: InMemoryTargetStore, observations: InMemoryObservationStore) -> None:
        self.targets = targets
        self.observations = observations
        self.opened = 0
        self.closed = 0

    @contextmanager
    def __call__(self) -> Iterator[MonitorStorage]:
        self.opened += 1
        try:
            yield MonitorStorage(targets=self.targets, observations=self.observations)
        finally:
            self.closed += 1


def make_target(target_id: int, **overrides: object) -> Target:
    fields: dict[str, object] = {
        "id": target_id,
        "url": f"https://www.madeiramadeira.com.br/parceiros/produto-{target_id}-{1000 + target_id}.html",
        "description": f"Produto {target_id}",
    }
    fields.update(overrides)
    return Target(**fields)  # type: ignore[arg-type]

