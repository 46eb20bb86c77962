"""Authoritative bill arithmetic.

Every monetary intermediate is quantized to ``0.01`` with ``ROUND_HALF_UP``
as soon as it is computed so totals match receipts to the cent.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Tuple

from .errors import ValidationError

ROUND = Decimal("0.01")
ZERO = Decimal("0.00")


class DiscountType(str, Enum):
    """How the ``discount`` value of a settlement is interpreted."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


def round2(value: object) -> Decimal:
    """Return ``value`` as a :class:`Decimal` rounded to cents."""

    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(ROUND, rounding=ROUND_HALF_UP)


def money(value: object) -> str:
    """Render an amount for JSON as a fixed two-decimal string."""

    return str(round2(value))


@dataclass(frozen=True)
class PriceBreakdown:
    """Reconciled totals for one settlement."""

    subtotal: Decimal
    discount_amount: Decimal
    taxable_base: Decimal
    tax: Decimal
    tip: Decimal
    final_total: Decimal
    change: Decimal | None = None

    def as_dict(self) -> dict:
        data = {
            "subtotal": money(self.subtotal),
            "discount_amount": money(self.discount_amount),
            "taxable_base": money(self.taxable_base),
            "tax": money(self.tax),
            "tip": money(self.tip),
            "final_total": money(self.final_total),
        }
        if self.change is not None:
            data["change"] = money(self.change)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PriceBreakdown":
        change = data.get("change")
        return cls(
            subtotal=round2(data["subtotal"]),
            discount_amount=round2(data["discount_amount"]),
            taxable_base=round2(data["taxable_base"]),
            tax=round2(data["tax"]),
            tip=round2(data["tip"]),
            final_total=round2(data["final_total"]),
            change=round2(change) if change is not None else None,
        )


def subtotal_of(lines: Iterable[Tuple[int, object]]) -> Decimal:
    """Sum ``quantity * unit_price`` pairs and round to cents."""

    total = Decimal("0")
    for qty, unit_price in lines:
        total += Decimal(qty) * Decimal(str(unit_price))
    return round2(total)


def price(
    subtotal: object,
    discount: object = 0,
    discount_type: DiscountType | str = DiscountType.PERCENTAGE,
    tip: object = 0,
    tax_rate: object = Decimal("0.08"),
    tendered: object | None = None,
) -> PriceBreakdown:
    """Compute the bill for ``subtotal`` after discount, tax and tip.

    Parameters
    ----------
    subtotal:
        Sum of line totals. Must be positive; there is nothing to settle
        otherwise.
    discount:
        Percentage (``0-100``, larger values are clamped through the
        subtotal floor) or a fixed amount depending on ``discount_type``.
    discount_type:
        A :class:`DiscountType` or its value. Anything else raises
        :class:`ValueError`.
    tip:
        Tip added after tax.
    tax_rate:
        Consumption tax applied to the discounted subtotal, e.g. ``0.08``.
    tendered:
        Cash handed over; when given, ``change`` is filled in.

    Examples
    --------
    >>> price("19.99", 0, "fixed", 0, "0.08").final_total
    Decimal('21.59')
    """

    kind = DiscountType(discount_type)
    base = round2(subtotal)
    discount_value = Decimal(str(discount or 0))
    tip_value = Decimal(str(tip or 0))

    errors: list[str] = []
    if base <= 0:
        errors.append("subtotal must be greater than zero")
    if discount_value < 0:
        errors.append("discount cannot be negative")
    if tip_value < 0:
        errors.append("tip cannot be negative")
    if errors:
        raise ValidationError(errors)

    if kind is DiscountType.PERCENTAGE:
        discount_amount = round2(base * discount_value / Decimal("100"))
    else:
        discount_amount = round2(discount_value)

    taxable_base = max(ZERO, round2(base - discount_amount))
    tax = round2(taxable_base * Decimal(str(tax_rate)))
    tip_amount = round2(tip_value)
    final_total = round2(taxable_base + tax + tip_amount)

    change = None
    if tendered is not None:
        change = max(ZERO, round2(Decimal(str(tendered)) - final_total))

    return PriceBreakdown(
        subtotal=base,
        discount_amount=discount_amount,
        taxable_base=taxable_base,
        tax=tax,
        tip=tip_amount,
        final_total=final_total,
        change=change,
    )


__all__ = [
    "DiscountType",
    "PriceBreakdown",
    "money",
    "price",
    "round2",
    "subtotal_of",
]
