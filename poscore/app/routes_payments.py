"""Payment lookups and the daily report used for cash register closing."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional

from fastapi import APIRouter, Depends, Query

from .deps.services import get_payments
from .domain.payment_methods import describe
from .domain.records import PaymentRecord
from .errors import NotFoundError, ValidationError
from .pricing import money
from .utils.responses import ok

router = APIRouter(prefix="/api/payments", tags=["payments"])


def summarize(payments: Iterable[PaymentRecord]) -> dict:
    """Aggregate ``payments`` into totals per payment method."""

    by_method: dict[str, dict] = defaultdict(
        lambda: {"count": 0, "total": Decimal("0"), "tips": Decimal("0")}
    )
    count = 0
    total = tax = tips = Decimal("0")
    for p in payments:
        count += 1
        total += p.amount
        tax += p.tax
        tips += p.tip
        bucket = by_method[p.payment_method]
        bucket["count"] += 1
        bucket["total"] += p.amount
        bucket["tips"] += p.tip
    return {
        "count": count,
        "total": money(total),
        "tax": money(tax),
        "tips": money(tips),
        "by_method": {
            name: {
                "label": describe(name),
                "count": b["count"],
                "total": money(b["total"]),
                "tips": money(b["tips"]),
            }
            for name, b in sorted(by_method.items())
        },
    }


@router.get("")
async def payments_report(
    day: Optional[date] = Query(None, alias="date"),
    end: Optional[date] = Query(None),
    payments=Depends(get_payments),
) -> dict:
    """Return payments completed on ``date`` (or ``date``..``end`` inclusive).

    Days are UTC calendar days; ``date`` defaults to today.
    """
    start_day = day or datetime.now(timezone.utc).date()
    end_day = end or start_day
    if end_day < start_day:
        raise ValidationError(["end must not be before date"])
    start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
    stop = datetime.combine(end_day + timedelta(days=1), time.min, tzinfo=timezone.utc)
    records = await payments.list_payments(start, stop)
    return ok(
        {
            "from": start_day.isoformat(),
            "to": end_day.isoformat(),
            **summarize(records),
            "payments": [p.to_dict() for p in records],
        }
    )


@router.get("/{payment_id}")
async def get_payment(payment_id: str, payments=Depends(get_payments)) -> dict:
    payment = await payments.get_payment(payment_id)
    if payment is None:
        raise NotFoundError(f"payment {payment_id} not found")
    return ok(payment.to_dict())


@router.get("/{payment_id}/invoice")
async def get_invoice(payment_id: str, payments=Depends(get_payments)) -> dict:
    invoice = await payments.get_invoice_for_payment(payment_id)
    if invoice is None:
        raise NotFoundError(f"no invoice for payment {payment_id}")
    return ok(invoice.to_dict())
