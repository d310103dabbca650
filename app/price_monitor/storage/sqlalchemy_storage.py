"""
SQLAlchemy-backed target and observation stores.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, delete, or_, select, update
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.price_monitoring import NewTarget, SellerListing, Target, TargetPriceSnapshot
from app.price_monitor.errors import StorageError
from app.price_monitor.storage.base import MonitorStorage, ObservationStore, TargetStore
from db.models import MonitorTarget, PriceObservation, TargetStatus


def build_due_targets_query(stale_before: datetime) -> Select[tuple[MonitorTarget]]:
    return (
        select(MonitorTarget)
        .where(
            or_(
                MonitorTarget.status != TargetStatus.SUCCESS,
                MonitorTarget.last_update_at.is_(None),
                MonitorTarget.last_update_at < stale_before,
            )
        )
        .order_by(MonitorTarget.last_update_at.asc().nulls_first(), MonitorTarget.id.asc())
    )


def build_upsert_statement(payloads: Sequence[dict[str, Any]]) -> Insert:
    stmt = insert(PriceObservation).values(list(payloads))
    return stmt.on_conflict_do_update(
        index_elements=[PriceObservation.product_id, PriceObservation.seller],
        set_={"price": stmt.excluded.price},
    )


def _to_target(row: MonitorTarget) -> Target:
    return Target(
        id=row.id,
        url=row.url,
        description=row.description or "",
        status=row.status,
        last_update_at=row.last_update_at,
        sku=row.sku,
        cost=row.cost,
    )


class SQLAlchemyTargetStore(TargetStore):
    def __init__(self, *, session: Session) -> None:
        self._session = session

    def select_due(self, *, stale_before: datetime) -> list[Target]:
        try:
            rows = self._session.scalars(build_due_targets_query(stale_before)).all()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"Failed to select due targets: {exc}") from exc
        return [_to_target(row) for row in rows]

    def update_status(self, *, target_id: int, status: str, updated_at: datetime) -> None:
        try:
            self._session.execute(
                update(MonitorTarget)
                .where(MonitorTarget.id == target_id)
                .values(status=status, last_update_at=updated_at)
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"Failed to update status of target={target_id}: {exc}") from exc

    def known_keys(self) -> tuple[set[str], set[str]]:
        try:
            rows = self._session.execute(select(MonitorTarget.url, MonitorTarget.sku)).all()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"Failed to read registered targets: {exc}") from exc
        urls = {row.url for row in rows}
        skus = {row.sku for row in rows if row.sku}
        return urls, skus

    def add_targets(self, targets: Sequence[NewTarget]) -> int:
        if not targets:
            return 0
        try:
            self._session.add_all(
                [
                    MonitorTarget(
                        url=target.url,
                        description=target.description,
                        sku=target.sku,
                        cost=target.cost,
                        status=TargetStatus.NEVER_RUN,
                    )
                    for target in targets
                ]
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"Failed to add {len(targets)} targets: {exc}") from exc
        return len(targets)


class SQLAlchemyObservationStore(ObservationStore):
    def __init__(self, *, session: Session) -> None:
        self._session = session

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"Observation transaction failed: {exc}") from exc
        except Exception:
            self._session.rollback()
            raise

    def upsert(
        self,
        *,
        target_id: int,
        product_id: str,
        listings: Iterable[SellerListing],
    ) -> int:
        payloads = [
            {
                "product_id": product_id,
                "seller": listing.seller,
                "price": listing.price,
                "target_id": target_id,
            }
            for listing in listings
        ]
        if not payloads:
            return 0
        self._execute(build_upsert_statement(payloads), action="upsert observations")
        return len(payloads)

    def sellers_for_target(self, target_id: int) -> set[str]:
        try:
            sellers = self._session.scalars(
                select(PriceObservation.seller).where(PriceObservation.target_id == target_id)
            ).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load sellers of target={target_id}: {exc}") from exc
        return set(sellers)

    def delete_sellers(self, *, target_id: int, sellers: Iterable[str]) -> int:
        seller_list = sorted(set(sellers))
        if not seller_list:
            return 0
        result = self._execute(
            delete(PriceObservation).where(
                PriceObservation.target_id == target_id,
                PriceObservation.seller.in_(seller_list),
            ),
            action="delete sellers",
        )
        return result.rowcount or 0

    def zero_out_seller(self, *, target_id: int, seller: str) -> int:
        result = self._execute(
            update(PriceObservation)
            .where(
                PriceObservation.target_id == target_id,
                PriceObservation.seller == seller,
            )
            .values(price=Decimal("0")),
            action="zero out seller",
        )
        return result.rowcount or 0

    def price_snapshots(self) -> list[TargetPriceSnapshot]:
        stmt = (
            select(MonitorTarget, PriceObservation)
            .outerjoin(PriceObservation, PriceObservation.target_id == MonitorTarget.id)
            .order_by(MonitorTarget.id.asc())
        )
        try:
            rows = self._session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read price snapshots: {exc}") from exc

        grouped: dict[int, dict[str, Any]] = {}
        for target, observation in rows:
            entry = grouped.setdefault(
                target.id,
                {"target": target, "product_id": None, "prices": {}},
            )
            if observation is not None:
                entry["product_id"] = entry["product_id"] or observation.product_id
                entry["prices"][observation.seller] = observation.price

        return [
            TargetPriceSnapshot(
                target_id=entry["target"].id,
                url=entry["target"].url,
                description=entry["target"].description or "",
                sku=entry["target"].sku,
                cost=entry["target"].cost,
                product_id=entry["product_id"],
                prices=entry["prices"],
            )
            for entry in grouped.values()
        ]

    def _execute(self, statement: Any, *, action: str) -> Any:
        try:
            return self._session.execute(statement)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to {action}: {exc}") from exc


@contextmanager
def sqlalchemy_storage_scope(
    session_factory: Callable[[], Session],
) -> Iterator[MonitorStorage]:
    """
    Open one session (and its connection) for a crawl cycle and close it on exit.
    """

    session: Session | None = None
    try:
        session = session_factory()
        session.connection()
    except (SQLAlchemyError, RuntimeError) as exc:
        if session is not None:
            session.close()
        raise StorageError(f"Failed to open monitoring database connection: {exc}") from exc

    try:
        yield MonitorStorage(
            targets=SQLAlchemyTargetStore(session=session),
            observations=SQLAlchemyObservationStore(session=session),
        )
    finally:
        session.close()
