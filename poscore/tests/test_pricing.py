"""Tests for bill arithmetic."""

import pathlib
import sys
from decimal import Decimal

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from poscore.app.errors import ValidationError  # noqa: E402
from poscore.app.pricing import (  # noqa: E402
    DiscountType,
    PriceBreakdown,
    money,
    price,
    round2,
    subtotal_of,
)


def test_rounding_at_each_step():
    bill = price(Decimal("19.99"), 0, DiscountType.FIXED, 0, Decimal("0.08"))
    assert bill.tax == Decimal("1.60")
    assert bill.final_total == Decimal("21.59")


def test_percentage_discount_tax_and_tip():
    bill = price(Decimal("100.00"), 10, "percentage", 5, Decimal("0.08"))
    assert bill.discount_amount == Decimal("10.00")
    assert bill.taxable_base == Decimal("90.00")
    assert bill.tax == Decimal("7.20")
    assert bill.tip == Decimal("5.00")
    assert bill.final_total == Decimal("102.20")


def test_fixed_discount_larger_than_subtotal_is_clamped():
    bill = price(Decimal("20.00"), Decimal("35.00"), DiscountType.FIXED, 0, Decimal("0.08"))
    assert bill.taxable_base == Decimal("0.00")
    assert bill.tax == Decimal("0.00")
    assert bill.final_total == Decimal("0.00")


def test_percentage_over_hundred_never_goes_negative():
    bill = price(Decimal("50.00"), 150, DiscountType.PERCENTAGE, 2, Decimal("0.08"))
    assert bill.final_total == Decimal("2.00")
    assert bill.final_total >= 0


def test_change_only_when_tendered():
    bill = price(Decimal("50.00"), 0, "percentage", 0, Decimal("0.08"))
    assert bill.change is None
    cash = price(Decimal("50.00"), 0, "percentage", 0, Decimal("0.08"), tendered=60)
    assert cash.final_total == Decimal("54.00")
    assert cash.change == Decimal("6.00")
    short = price(Decimal("50.00"), 0, "percentage", 0, Decimal("0.08"), tendered=50)
    assert short.change == Decimal("0.00")


def test_is_deterministic():
    args = (Decimal("33.33"), Decimal("12.5"), "percentage", Decimal("1.11"), Decimal("0.08"))
    assert price(*args) == price(*args)


def test_half_up_rounding():
    assert round2("0.125") == Decimal("0.13")
    assert round2(Decimal("2.675")) == Decimal("2.68")
    # 10.05 * 0.08 = 0.804
    assert price(Decimal("10.05"), 0, "fixed", 0, Decimal("0.08")).tax == Decimal("0.80")


@pytest.mark.parametrize("subtotal", [Decimal("0"), Decimal("-1.00")])
def test_non_positive_subtotal_rejected(subtotal):
    with pytest.raises(ValidationError) as exc:
        price(subtotal, 0, "percentage", 0, Decimal("0.08"))
    assert exc.value.errors == ["subtotal must be greater than zero"]


def test_negative_discount_and_tip_reported_together():
    with pytest.raises(ValidationError) as exc:
        price(Decimal("10.00"), -1, "fixed", -2, Decimal("0.08"))
    assert exc.value.errors == ["discount cannot be negative", "tip cannot be negative"]


def test_unknown_discount_type_is_programming_error():
    with pytest.raises(ValueError) as exc:
        price(Decimal("10.00"), 1, "bogus", 0, Decimal("0.08"))
    assert not isinstance(exc.value, ValidationError)


def test_subtotal_of_lines():
    assert subtotal_of([(2, Decimal("24.50")), (3, "3.50")]) == Decimal("59.50")


def test_breakdown_dict_round_trip_keeps_cents():
    bill = price(Decimal("19.99"), 0, "fixed", 0, Decimal("0.08"), tendered=25)
    restored = PriceBreakdown.from_dict(bill.as_dict())
    assert restored == bill


def test_amounts_serialize_as_exact_strings():
    bill = price(Decimal("19.99"), 0, "fixed", 0, Decimal("0.08"), tendered=25)
    data = bill.as_dict()
    assert data["tax"] == "1.60"
    assert data["final_total"] == "21.59"
    assert data["change"] == "3.41"
    assert money(0) == "0.00"
    assert money(Decimal("0.1") + Decimal("0.2")) == "0.30"
