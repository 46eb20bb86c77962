import pathlib
import sys
from decimal import Decimal

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from poscore.app.domain.payment_methods import (  # noqa: E402
    QR,
    Cash,
    Terminal,
    TerminalKind,
    build_method,
    method_name,
)
from poscore.app.domain.settlement import SettlementRequest  # noqa: E402
from poscore.app.pricing import price  # noqa: E402
from poscore.app.validation import (  # noqa: E402
    PaymentValidator,
    looks_like_card_number,
)

BILL = price(Decimal("50.00"), 0, "percentage", 0, Decimal("0.08"))


def _request(method, employee="emp-1", table=3):
    return SettlementRequest(table_id=table, employee_id=employee, method=method)


def test_cash_shortfall_single_error():
    result = PaymentValidator().validate(_request(Cash(Decimal("50.00"))), BILL)
    assert not result.ok
    assert len(result.errors) == 1
    assert "54.00" in result.errors[0]
    assert "4.00" in result.errors[0]


def test_exact_cash_is_accepted():
    result = PaymentValidator().validate(_request(Cash(Decimal("54.00"))), BILL)
    assert result.ok


def test_missing_cash():
    result = PaymentValidator().validate(_request(Cash(Decimal("0"))), BILL)
    assert result.errors == ["cash received is required"]


def test_collects_every_problem():
    result = PaymentValidator().validate(
        _request(QR(""), employee="  ", table=0), BILL
    )
    assert result.errors == [
        "employee id is required",
        "a valid table id is required",
        "QR transfer reference is required",
    ]


def test_terminal_rules():
    validator = PaymentValidator(terminal_txn_min_length=4)
    ok = validator.validate(_request(Terminal("A1B2C3", TerminalKind.DEBIT)), BILL)
    assert ok.ok
    short = validator.validate(_request(Terminal("12", TerminalKind.CREDIT)), BILL)
    assert short.errors == ["terminal transaction id must have at least 4 characters"]
    blank = validator.validate(_request(Terminal("", TerminalKind.CREDIT)), BILL)
    assert blank.errors == ["terminal transaction id is required"]


def test_terminal_rejects_card_numbers():
    result = PaymentValidator().validate(
        _request(Terminal("4111 1111 1111 1111", TerminalKind.CREDIT)), BILL
    )
    assert len(result.errors) == 1
    assert "card number" in result.errors[0]


def test_qr_reference_min_length():
    validator = PaymentValidator(qr_reference_min_length=6)
    assert not validator.validate(_request(QR("ABC12")), BILL).ok
    assert validator.validate(_request(QR("ABC123")), BILL).ok


@pytest.mark.parametrize(
    "value,expected",
    [
        ("4111111111111111", True),
        ("5500-0000-0000-0004", True),
        ("4111111111111112", False),
        ("123456", False),
        ("APPROVAL-998877", False),
    ],
)
def test_card_number_detection(value, expected):
    assert looks_like_card_number(value) is expected


def test_build_method_accepts_aliases():
    assert method_name(build_method("efectivo", {"tendered": "10"})) == "cash"
    assert method_name(build_method("datafono_debito", {"transaction_id": "x1"})) == "card_debit"
    assert method_name(build_method("datafono_credito", {"transaction_id": "x1"})) == "card_credit"
    assert method_name(build_method("qr_bancolombia", {"reference": "r"})) == "qr"
    with pytest.raises(ValueError):
        build_method("cheque", {})
