"""Utilities for managing invoice counters."""

from __future__ import annotations

from collections import defaultdict
from datetime import date

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


def build_series(prefix: str, reset: str, today: date | None = None) -> str:
    """Return the series string for ``prefix`` and ``reset`` policy.

    The series is the persistence key of the counter. It excludes the
    constant ``INV`` prefix and the zero-padded suffix added by
    :func:`format_number`.
    """
    today = today or date.today()
    reset = getattr(reset, "value", reset)
    if reset == "monthly":
        return f"{prefix}-{today:%Y%m}"
    if reset == "yearly":
        return f"{prefix}-{today:%Y}"
    return prefix


def format_number(series: str, current: int) -> str:
    return f"INV-{series}-{current:04d}"


async def next_invoice_number(session: AsyncSession, series: str) -> str:
    """Return the next invoice number for ``series``.

    The counter row is created if missing and incremented atomically. The
    caller owns the transaction so the number is only consumed when the
    settlement that uses it commits.
    """
    stmt = text(
        """
        INSERT INTO invoice_counters (series, current)
        VALUES (:series, 1)
        ON CONFLICT (series)
        DO UPDATE SET current = invoice_counters.current + 1
        RETURNING current
        """
    )
    result = await session.execute(stmt, {"series": series})
    return format_number(series, result.scalar_one())


class MemoryInvoiceCounter:
    """Process-local counter used by the in-memory store."""

    def __init__(self) -> None:
        self._current: dict[str, int] = defaultdict(int)

    def peek(self, series: str) -> str:
        return format_number(series, self._current[series] + 1)

    def advance(self, series: str) -> None:
        self._current[series] += 1
