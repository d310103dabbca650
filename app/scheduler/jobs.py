"""
app/scheduler/jobs.py

APScheduler wiring for the periodic price monitor crawl.

Schedule
--------
  price_monitor_cycle: every PRICE_MONITOR_INTERVAL_MINUTES (default 20),
                        in PRICE_MONITOR_TIMEZONE (default America/Sao_Paulo)

The job itself never overlaps: APScheduler is told to keep one instance, and
the crawl engine's process-wide run guard turns any concurrent trigger
(CLI, second scheduler) into a skipped cycle.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``,
``.start()`` it on process boot and ``.shutdown(wait=True)`` on exit.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.price_monitor.config import PriceMonitorSettings, get_price_monitor_settings
from app.price_monitor.errors import StorageError
from app.services.price_monitor_service import run_price_monitor_cycle

logger = logging.getLogger(__name__)

PRICE_MONITOR_JOB_ID = "price_monitor_cycle"


def run_price_monitor_job() -> None:
    """
    Scheduler job body. Fatal storage failures are logged; the next tick retries.
    """

    try:
        summary = run_price_monitor_cycle()
    except StorageError as exc:
        logger.error("Scheduler: price_monitor_cycle aborted: %s", exc)
        return

    logger.info(
        "Scheduler: price_monitor_cycle status=%s targets=%d succeeded=%d failed=%d",
        summary.status,
        len(summary.outcomes),
        summary.succeeded,
        summary.failed,
    )


def build_scheduler(settings: PriceMonitorSettings | None = None) -> BackgroundScheduler:
    """
    Return a configured but *not yet started* ``BackgroundScheduler``.
    """

    settings = settings or get_price_monitor_settings()
    scheduler = BackgroundScheduler(timezone=settings.timezone)
    scheduler.add_job(
        run_price_monitor_job,
        trigger="interval",
        minutes=settings.interval_minutes,
        id=PRICE_MONITOR_JOB_ID,
        name="Competitor price monitor cycle",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=settings.interval_minutes * 60,
    )
    return scheduler
