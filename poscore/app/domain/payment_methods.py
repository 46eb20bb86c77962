"""Payment methods accepted at the till.

Each method is its own frozen dataclass carrying only the fields it needs, so
handling code switches on the type instead of probing optional attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Union


class TerminalKind(str, Enum):
    """Card type reported by the card terminal."""

    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class Cash:
    """Cash handed over at the table."""

    tendered: Decimal


@dataclass(frozen=True)
class Terminal:
    """Card-present payment approved on a terminal.

    Only the terminal's transaction id is kept; card numbers never enter the
    system.
    """

    transaction_id: str
    kind: TerminalKind


@dataclass(frozen=True)
class QR:
    """Bank transfer initiated by scanning the restaurant QR code."""

    reference: str


PaymentMethod = Union[Cash, Terminal, QR]

# Wire names used by the original Spanish-language tills.
METHOD_ALIASES: Dict[str, str] = {
    "efectivo": "cash",
    "datafono_debito": "card_debit",
    "datafono_credito": "card_credit",
    "qr_bancolombia": "qr",
}

DESCRIPTIONS: Dict[str, str] = {
    "cash": "Cash",
    "card_debit": "Debit card",
    "card_credit": "Credit card",
    "qr": "QR transfer",
}


def canonical_name(name: str) -> str:
    """Map an alias such as ``efectivo`` to its canonical method name."""

    key = name.strip().lower()
    return METHOD_ALIASES.get(key, key)


def method_name(method: PaymentMethod) -> str:
    """Return the wire name for ``method``."""

    if isinstance(method, Cash):
        return "cash"
    if isinstance(method, Terminal):
        return "card_debit" if method.kind is TerminalKind.DEBIT else "card_credit"
    if isinstance(method, QR):
        return "qr"
    raise TypeError(f"unsupported payment method {method!r}")


def method_fields(method: PaymentMethod) -> Dict[str, str]:
    """Return the method-specific fields as strings for storage and hashing."""

    if isinstance(method, Cash):
        return {"tendered": str(method.tendered)}
    if isinstance(method, Terminal):
        return {"transaction_id": method.transaction_id, "kind": method.kind.value}
    if isinstance(method, QR):
        return {"reference": method.reference}
    raise TypeError(f"unsupported payment method {method!r}")


def build_method(name: str, fields: Mapping[str, Any]) -> PaymentMethod:
    """Construct a payment method from its wire ``name`` and ``fields``.

    Raises :class:`ValueError` for unknown method names.
    """

    canonical = canonical_name(name)
    if canonical == "cash":
        return Cash(tendered=Decimal(str(fields.get("tendered") or 0)))
    if canonical in {"card_debit", "card_credit"}:
        kind = TerminalKind.DEBIT if canonical == "card_debit" else TerminalKind.CREDIT
        return Terminal(
            transaction_id=str(fields.get("transaction_id") or "").strip(),
            kind=kind,
        )
    if canonical == "qr":
        return QR(reference=str(fields.get("reference") or "").strip())
    raise ValueError(f"unknown payment method {name!r}")


def describe(name: str) -> str:
    """Return a human readable label for a method name or alias."""

    canonical = canonical_name(name)
    return DESCRIPTIONS.get(canonical, name)


__all__ = [
    "Cash",
    "Terminal",
    "QR",
    "TerminalKind",
    "PaymentMethod",
    "METHOD_ALIASES",
    "build_method",
    "canonical_name",
    "describe",
    "method_fields",
    "method_name",
]
