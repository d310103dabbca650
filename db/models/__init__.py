"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.monitor_target import MonitorTarget, TargetStatus
from db.models.price_observation import PriceObservation

__all__ = [
    "MonitorTarget",
    "PriceObservation",
    "TargetStatus",
]
