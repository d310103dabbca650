"""
app/services/price_monitor_service.py

Service wiring for the competitor price monitor.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache

import requests
from sqlalchemy.orm import Session

from app.domain.price_monitoring import CycleSummary
from app.price_monitor.catalog import plan_new_targets, read_catalog_csv
from app.price_monitor.config import PriceMonitorSettings, get_price_monitor_settings
from app.price_monitor.engine import PriceMonitorEngine
from app.price_monitor.fetcher import PageFetcher
from app.price_monitor.logging_utils import log_event
from app.price_monitor.pacer import Pacer
from app.price_monitor.registry import ParserRegistry
from app.price_monitor.storage import SQLAlchemyTargetStore, sqlalchemy_storage_scope
from db.session import SessionLocal

logger = logging.getLogger(__name__)


class PriceMonitorService:
    """
    Builds the crawl engine from settings and exposes the cycle trigger.
    """

    def __init__(
        self,
        settings: PriceMonitorSettings | None = None,
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        http_session: requests.Session | None = None,
        registry: ParserRegistry | None = None,
    ) -> None:
        self._settings = settings or get_price_monitor_settings()
        self._session_factory = session_factory
        self._http_session = http_session or requests.Session()
        self._registry = registry or ParserRegistry()
        self._engine: PriceMonitorEngine | None = None

    @property
    def engine(self) -> PriceMonitorEngine:
        if self._engine is None:
            self._engine = self._build_engine()
        return self._engine

    def run_cycle(self) -> CycleSummary:
        return self.engine.run_cycle()

    def seed_targets(self, *, db: Session, catalog_csv: str) -> int:
        """
        Register targets from a catalog CSV export; returns the number added.
        """

        rows = read_catalog_csv(catalog_csv)
        store = SQLAlchemyTargetStore(session=db)
        known_urls, known_skus = store.known_keys()
        planned = plan_new_targets(rows, known_urls=known_urls, known_skus=known_skus)
        added = store.add_targets(planned)
        log_event(
            logger,
            logging.INFO,
            "price_monitor_targets_seeded",
            rows=len(rows),
            added=added,
            skipped=len(rows) - added,
        )
        return added

    def _build_engine(self) -> PriceMonitorEngine:
        settings = self._settings
        return PriceMonitorEngine(
            storage_factory=lambda: sqlalchemy_storage_scope(self._session_factory),
            fetcher=PageFetcher(
                session=self._http_session,
                timeout_seconds=settings.timeout_seconds,
                user_agent=settings.user_agent,
                headers=settings.headers,
            ),
            parser=self._registry.create_parser(settings.parser),
            pacer=Pacer(delay_seconds=settings.pacing_seconds),
            sentinel_seller=settings.sentinel_seller,
            stale_threshold=settings.stale_threshold,
        )


@lru_cache(maxsize=1)
def get_price_monitor_service() -> PriceMonitorService:
    """
    Build and cache the process-wide price monitor service.
    """

    return PriceMonitorService()


def run_price_monitor_cycle() -> CycleSummary:
    """
    Entry point for schedulers: run one crawl cycle (or skip if one is running).
    """

    return get_price_monitor_service().run_cycle()
