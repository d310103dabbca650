"""
db/base.py

Declarative base and shared mixins for the price monitor models.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Project-wide declarative base.
    Monetary columns map to NUMERIC(12, 2) unless declared otherwise.
    """

    type_annotation_map: dict[type, Any] = {
        Decimal: Numeric(12, 2),
    }


class TimestampMixin:
    """
    Adds created_at and updated_at bookkeeping columns.
    updated_at is refreshed on every ORM UPDATE via onupdate.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
