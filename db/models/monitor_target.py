"""
db/models/monitor_target.py

Marketplace product page monitored by the price crawler.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class TargetStatus:
    NEVER_RUN = "NEVER_RUN"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class MonitorTarget(Base, TimestampMixin):
    __tablename__ = "monitor_targets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sku: Mapped[str | None] = mapped_column(
        String(120),
        nullable=True,
        unique=True,
        comment="Operator SKU for the listing, used when seeding from catalog exports",
    )
    cost: Mapped[Decimal | None] = mapped_column(
        nullable=True,
        comment="Unit cost used by price alert margins",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=TargetStatus.NEVER_RUN,
        server_default=TargetStatus.NEVER_RUN,
        comment="NEVER_RUN, SUCCESS, ERROR",
    )
    last_update_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_monitor_targets_status", "status"),
        Index("ix_monitor_targets_last_update_at", "last_update_at"),
    )
