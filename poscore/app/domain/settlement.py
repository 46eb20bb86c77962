"""Inputs and outcomes of the settlement and kitchen dispatch flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..pricing import DiscountType, PriceBreakdown
from .payment_methods import PaymentMethod
from .records import InvoiceRecord, OrderLine, PaymentRecord


@dataclass(frozen=True)
class SettlementRequest:
    table_id: int
    employee_id: str
    method: PaymentMethod
    discount: Decimal = Decimal("0")
    discount_type: DiscountType = DiscountType.PERCENTAGE
    tip: Decimal = Decimal("0")


@dataclass
class SettlementResult:
    payment: PaymentRecord
    invoice: InvoiceRecord
    breakdown: PriceBreakdown
    degraded: bool = False
    warnings: List[str] = field(default_factory=list)
    execution_id: Optional[str] = None
    replayed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payment": self.payment.to_dict(),
            "invoice": self.invoice.to_dict(),
            "breakdown": self.breakdown.as_dict(),
            "degraded": self.degraded,
            "warnings": list(self.warnings),
            "execution_id": self.execution_id,
            "replayed": self.replayed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SettlementResult":
        return cls(
            payment=PaymentRecord.from_dict(data["payment"]),
            invoice=InvoiceRecord.from_dict(data["invoice"]),
            breakdown=PriceBreakdown.from_dict(data["breakdown"]),
            degraded=bool(data.get("degraded")),
            warnings=list(data.get("warnings") or []),
            execution_id=data.get("execution_id"),
            replayed=bool(data.get("replayed")),
        )


@dataclass
class DispatchResult:
    table_id: int
    lines: List[OrderLine]
    ledger_cleared: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_id": self.table_id,
            "lines_sent": len(self.lines),
            "units_sent": sum(line.quantity for line in self.lines),
            "lines": [
                {"product_id": line.product_id, "quantity": line.quantity}
                for line in self.lines
            ],
            "ledger_cleared": self.ledger_cleared,
            "warnings": list(self.warnings),
        }


__all__ = ["DispatchResult", "SettlementRequest", "SettlementResult"]
