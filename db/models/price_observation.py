"""
db/models/price_observation.py

Current (seller, price) listing observed on a monitored product page.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base

OBSERVATION_KEY_CONSTRAINT = "uq_price_observations_product_seller"


class PriceObservation(Base):
    __tablename__ = "price_observations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seller: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(nullable=False)
    target_id: Mapped[int] = mapped_column(
        ForeignKey("monitor_targets.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("product_id", "seller", name=OBSERVATION_KEY_CONSTRAINT),
        Index("ix_price_observations_target_id", "target_id"),
    )
