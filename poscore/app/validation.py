"""Payment validation rules.

The validator never raises; it collects every problem so the cashier can fix
them in one pass. :class:`~poscore.app.services.settlement.SettlementCoordinator`
turns a failed result into a :class:`~poscore.app.errors.ValidationError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from .domain.payment_methods import QR, Cash, Terminal
from .domain.settlement import SettlementRequest
from .pricing import PriceBreakdown, round2


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def luhn_valid(digits: str) -> bool:
    """Return ``True`` when ``digits`` passes the Luhn checksum."""

    total = 0
    for idx, ch in enumerate(reversed(digits)):
        n = int(ch)
        if idx % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def looks_like_card_number(value: str) -> bool:
    compact = value.replace(" ", "").replace("-", "")
    return compact.isdigit() and 13 <= len(compact) <= 19 and luhn_valid(compact)


class PaymentValidator:
    """Check a settlement request against the priced bill."""

    def __init__(
        self,
        terminal_txn_min_length: int = 4,
        qr_reference_min_length: int = 6,
    ) -> None:
        self.terminal_txn_min_length = terminal_txn_min_length
        self.qr_reference_min_length = qr_reference_min_length

    def validate(
        self, request: SettlementRequest, breakdown: PriceBreakdown
    ) -> ValidationResult:
        result = ValidationResult()
        errors = result.errors

        if not str(request.employee_id or "").strip():
            errors.append("employee id is required")
        if not request.table_id or request.table_id <= 0:
            errors.append("a valid table id is required")
        if breakdown.subtotal <= 0:
            errors.append("subtotal must be greater than zero")

        method = request.method
        if isinstance(method, Cash):
            self._check_cash(method, breakdown, errors)
        elif isinstance(method, Terminal):
            self._check_terminal(method, errors)
        elif isinstance(method, QR):
            self._check_qr(method, errors)
        else:
            raise TypeError(f"unsupported payment method {method!r}")
        return result

    def _check_cash(
        self, method: Cash, breakdown: PriceBreakdown, errors: List[str]
    ) -> None:
        tendered = method.tendered or Decimal("0")
        if tendered <= 0:
            errors.append("cash received is required")
            return
        if tendered < breakdown.final_total:
            shortfall = round2(breakdown.final_total - tendered)
            errors.append(
                f"insufficient cash: total is {breakdown.final_total}, "
                f"received {round2(tendered)}, missing {shortfall}"
            )

    def _check_terminal(self, method: Terminal, errors: List[str]) -> None:
        txn = (method.transaction_id or "").strip()
        if not txn:
            errors.append("terminal transaction id is required")
            return
        if looks_like_card_number(txn):
            errors.append(
                "terminal transaction id looks like a card number; "
                "enter the approval code printed on the voucher"
            )
            return
        if len(txn) < self.terminal_txn_min_length:
            errors.append(
                "terminal transaction id must have at least "
                f"{self.terminal_txn_min_length} characters"
            )

    def _check_qr(self, method: QR, errors: List[str]) -> None:
        ref = (method.reference or "").strip()
        if not ref:
            errors.append("QR transfer reference is required")
            return
        if len(ref) < self.qr_reference_min_length:
            errors.append(
                "QR transfer reference must have at least "
                f"{self.qr_reference_min_length} characters"
            )


__all__ = [
    "PaymentValidator",
    "ValidationResult",
    "looks_like_card_number",
    "luhn_valid",
]
