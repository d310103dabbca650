"""
Price monitor command line.

    python -m scripts.run_price_monitor run
    python -m scripts.run_price_monitor schedule
    python -m scripts.run_price_monitor seed catalog.csv
    python -m scripts.run_price_monitor alerts [--uncontested | --out-of-promotion]
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import time
from pathlib import Path

from app.price_monitor.errors import StorageError
from app.scheduler.jobs import build_scheduler
from app.schemas.price_monitoring import (
    CycleSummaryResponse,
    PriceAlertResponse,
    UncontestedTargetResponse,
)
from app.services.price_alert_service import PriceAlertService
from app.services.price_monitor_service import get_price_monitor_service
from db.session import session_scope

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _run(_: argparse.Namespace) -> int:
    try:
        summary = get_price_monitor_service().run_cycle()
    except StorageError as exc:
        logger.error("Price monitor cycle aborted: %s", exc)
        return 1
    print(CycleSummaryResponse.from_summary(summary).model_dump_json(indent=2))
    return 0


def _schedule(_: argparse.Namespace) -> int:
    scheduler = build_scheduler()
    scheduler.start()
    logger.info("Price monitor scheduler started; press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        logger.info("Stopping price monitor scheduler.")
    finally:
        scheduler.shutdown(wait=True)
    return 0


def _seed(args: argparse.Namespace) -> int:
    content = Path(args.catalog).read_text(encoding=args.encoding)
    with session_scope() as db:
        added = get_price_monitor_service().seed_targets(db=db, catalog_csv=content)
    print(json.dumps({"added": added}))
    return 0


def _alerts(args: argparse.Namespace) -> int:
    service = PriceAlertService()
    with session_scope() as db:
        if args.uncontested:
            payload = [
                UncontestedTargetResponse.from_snapshot(item).model_dump(mode="json")
                for item in service.uncontested(db=db)
            ]
        elif args.out_of_promotion:
            payload = [
                PriceAlertResponse.from_alert(alert).model_dump(mode="json")
                for alert in service.out_of_promotion(db=db)
            ]
        else:
            payload = [
                PriceAlertResponse.from_alert(alert).model_dump(mode="json")
                for alert in service.alerts(db=db)
            ]
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Competitor price monitor.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Run one crawl cycle now")
    run.set_defaults(handler=_run)

    schedule = sub.add_parser("schedule", help="Run crawl cycles on the configured interval")
    schedule.set_defaults(handler=_schedule)

    seed = sub.add_parser("seed", help="Register targets from a catalog CSV export")
    seed.add_argument("catalog", help='CSV with "ID Produto", "SKU Seller" and "Nome" columns')
    seed.add_argument("--encoding", default="utf-8-sig")
    seed.set_defaults(handler=_seed)

    alerts = sub.add_parser("alerts", help="Print price alerts as JSON")
    mode = alerts.add_mutually_exclusive_group()
    mode.add_argument("--uncontested", action="store_true", help="Targets with no competitor")
    mode.add_argument(
        "--out-of-promotion",
        action="store_true",
        help="Alerts already priced at the suggested value",
    )
    alerts.set_defaults(handler=_alerts)
    return parser


def main(argv: list[str] | None = None) -> int:
    _configure_logging()
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
