"""
app/services/price_alert_service.py

Read-only price alert analysis over the current observation snapshot.

An alert is raised when the cheapest competitor on a target's page sells
below the operator's own (sentinel seller) price. Marketplace prices are
shown net of the marketplace commission, so gross values are recovered by
dividing by the commission factor:

    own_gross        = own_price / factor
    suggested_price  = lowest_price / factor - 0.10
    current_margin   = (own_gross - cost) / own_gross * 100
    suggested_margin = (suggested_price - cost) / suggested_price * 100

Margins are only computed when the target has a known cost.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from app.domain.price_monitoring import PriceAlert, TargetPriceSnapshot
from app.price_monitor.config import PriceMonitorSettings, get_price_monitor_settings
from app.price_monitor.storage import SQLAlchemyObservationStore

CENTS = Decimal("0.01")
UNDERCUT_STEP = Decimal("0.10")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _margin(price: Decimal, cost: Decimal | None) -> Decimal | None:
    if cost is None or price <= 0:
        return None
    return _money((price - cost) / price * 100)


def own_price(snapshot: TargetPriceSnapshot, *, sentinel_seller: str) -> Decimal | None:
    """
    The operator's listed price, or None when absent or zeroed out (not listed).
    """

    price = snapshot.prices.get(sentinel_seller)
    if price is None or price <= 0:
        return None
    return price


def lowest_competitor(
    snapshot: TargetPriceSnapshot,
    *,
    sentinel_seller: str,
) -> tuple[str, Decimal] | None:
    competitors = [
        (price, seller)
        for seller, price in snapshot.prices.items()
        if seller != sentinel_seller and price > 0
    ]
    if not competitors:
        return None
    price, seller = min(competitors)
    return seller, price


def build_price_alert(
    snapshot: TargetPriceSnapshot,
    *,
    sentinel_seller: str,
    commission_factor: Decimal,
) -> PriceAlert | None:
    own = own_price(snapshot, sentinel_seller=sentinel_seller)
    lowest = lowest_competitor(snapshot, sentinel_seller=sentinel_seller)
    if own is None or lowest is None:
        return None

    lowest_seller, lowest_price = lowest
    if lowest_price >= own:
        return None

    own_gross = _money(own / commission_factor)
    suggested = _money(lowest_price / commission_factor - UNDERCUT_STEP)
    return PriceAlert(
        target_id=snapshot.target_id,
        sku=snapshot.sku,
        description=snapshot.description,
        url=snapshot.url,
        product_id=snapshot.product_id,
        own_price=own,
        own_price_gross=own_gross,
        lowest_price=lowest_price,
        lowest_seller=lowest_seller,
        suggested_price=suggested,
        current_margin=_margin(own_gross, snapshot.cost),
        suggested_margin=_margin(suggested, snapshot.cost),
        cost=snapshot.cost,
    )


def build_price_alerts(
    snapshots: Sequence[TargetPriceSnapshot],
    *,
    sentinel_seller: str,
    commission_factor: Decimal,
) -> list[PriceAlert]:
    alerts: list[PriceAlert] = []
    for snapshot in snapshots:
        alert = build_price_alert(
            snapshot,
            sentinel_seller=sentinel_seller,
            commission_factor=commission_factor,
        )
        if alert is not None:
            alerts.append(alert)
    return alerts


def find_uncontested(
    snapshots: Sequence[TargetPriceSnapshot],
    *,
    sentinel_seller: str,
) -> list[TargetPriceSnapshot]:
    """Targets where no seller other than the operator is listed."""
    return [
        snapshot
        for snapshot in snapshots
        if not any(seller != sentinel_seller for seller in snapshot.prices)
    ]


def find_out_of_promotion(alerts: Sequence[PriceAlert]) -> list[PriceAlert]:
    """Alerts whose own price already equals the suggested price."""
    return [alert for alert in alerts if _money(alert.own_price) == alert.suggested_price]


class PriceAlertService:
    """
    Loads the current price snapshot and derives alerts from it.
    """

    def __init__(self, settings: PriceMonitorSettings | None = None) -> None:
        self._settings = settings or get_price_monitor_settings()

    def snapshots(self, *, db: Session) -> list[TargetPriceSnapshot]:
        return SQLAlchemyObservationStore(session=db).price_snapshots()

    def alerts(self, *, db: Session) -> list[PriceAlert]:
        return build_price_alerts(
            self.snapshots(db=db),
            sentinel_seller=self._settings.sentinel_seller,
            commission_factor=self._settings.commission_factor,
        )

    def uncontested(self, *, db: Session) -> list[TargetPriceSnapshot]:
        return find_uncontested(
            self.snapshots(db=db),
            sentinel_seller=self._settings.sentinel_seller,
        )

    def out_of_promotion(self, *, db: Session) -> list[PriceAlert]:
        return find_out_of_promotion(self.alerts(db=db))
