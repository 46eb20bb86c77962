"""Timing for SQL statements issued by the settlement store."""

from __future__ import annotations

import logging
import os
import time

from prometheus_client import Histogram
from sqlalchemy import event
from sqlalchemy.engine import Engine

SLOW_QUERY_MS = int(os.getenv("DB_SLOW_QUERY_MS", "200"))

db_query_seconds = Histogram(
    "db_query_seconds",
    "SQL statement duration",
    ["db", "verb"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

logger = logging.getLogger("poscore.sql")


def _verb(statement: str) -> str:
    head = statement.lstrip().split(None, 1)
    return head[0].lower() if head else "unknown"


def add_query_logger(engine: Engine, label: str = "pos") -> None:
    """Record every statement's duration and warn about slow ones.

    Only the statement verb and a truncated statement are logged; bound
    parameters may hold payment references and are left out.
    """
    target = getattr(engine, "sync_engine", engine)

    @event.listens_for(target, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        context._pos_started = time.perf_counter()

    @event.listens_for(target, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        elapsed = time.perf_counter() - context._pos_started
        verb = _verb(statement)
        db_query_seconds.labels(db=label, verb=verb).observe(elapsed)
        if elapsed * 1000 > SLOW_QUERY_MS:
            sql = " ".join(statement.split())
            logger.warning(
                "slow %s on %s took %dms: %s",
                verb,
                label,
                int(elapsed * 1000),
                sql[:200],
            )
