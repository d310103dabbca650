"""
Storage layer exports.
"""

from app.price_monitor.storage.base import MonitorStorage, ObservationStore, TargetStore
from app.price_monitor.storage.sqlalchemy_storage import (
    SQLAlchemyObservationStore,
    SQLAlchemyTargetStore,
    sqlalchemy_storage_scope,
)

__all__ = [
    "MonitorStorage",
    "ObservationStore",
    "SQLAlchemyObservationStore",
    "SQLAlchemyTargetStore",
    "TargetStore",
    "sqlalchemy_storage_scope",
]
