"""
Structured logging helpers for the price monitor.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


@contextmanager
def timed_event(
    logger: logging.Logger,
    event: str,
    **fields: Any,
) -> Iterator[dict[str, Any]]:
    """
    Log `<event>_started` on entry and `<event>_finished` with elapsed_ms on exit.

    The yielded dict can be filled by the caller; its keys are appended to the
    finish line. On exception the finish line is logged at ERROR with the
    exception text and the exception is re-raised.
    """

    extra: dict[str, Any] = {}
    started = time.monotonic()
    log_event(logger, logging.INFO, f"{event}_started", **fields)
    try:
        yield extra
    except Exception as exc:
        log_event(
            logger,
            logging.ERROR,
            f"{event}_failed",
            elapsed_ms=round((time.monotonic() - started) * 1000),
            error=str(exc),
            error_type=type(exc).__name__,
            **{**fields, **extra},
        )
        raise
    log_event(
        logger,
        logging.INFO,
        f"{event}_finished",
        elapsed_ms=round((time.monotonic() - started) * 1000),
        **{**fields, **extra},
    )
