"""Plain records exchanged between the ledger, the stores and the routes."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from ..pricing import money
from .table_status import TableStatus

DEFAULT_CUSTOMER = "CONSUMIDOR FINAL"


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Table:
    id: int
    number: int
    capacity: int
    status: TableStatus = TableStatus.AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "capacity": self.capacity,
            "status": self.status.value,
        }


@dataclass
class OrderLine:
    table_id: int
    product_id: int
    quantity: int = 1
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str = "Utensils"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Decimal
    category_id: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money(self.price),
            "category_id": self.category_id,
        }


@dataclass
class PaymentRecord:
    """Completed payment; never updated after it is stored."""

    table_id: int
    employee_id: str
    payment_method: str
    amount: Decimal
    subtotal: Decimal
    tax: Decimal
    tip: Decimal
    discount: Decimal
    discount_type: str
    method_fields: Dict[str, str] = field(default_factory=dict)
    change: Decimal | None = None
    status: str = "completed"
    completed_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "table_id": self.table_id,
            "employee_id": self.employee_id,
            "payment_method": self.payment_method,
            "amount": money(self.amount),
            "subtotal": money(self.subtotal),
            "tax": money(self.tax),
            "tip": money(self.tip),
            "discount": money(self.discount),
            "discount_type": self.discount_type,
            "method_fields": dict(self.method_fields),
            "change": money(self.change) if self.change is not None else None,
            "status": self.status,
            "completed_at": self.completed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentRecord":
        change = data.get("change")
        return cls(
            id=data["id"],
            table_id=int(data["table_id"]),
            employee_id=data["employee_id"],
            payment_method=data["payment_method"],
            amount=Decimal(str(data["amount"])),
            subtotal=Decimal(str(data["subtotal"])),
            tax=Decimal(str(data["tax"])),
            tip=Decimal(str(data["tip"])),
            discount=Decimal(str(data["discount"])),
            discount_type=data["discount_type"],
            method_fields=dict(data.get("method_fields") or {}),
            change=Decimal(str(change)) if change is not None else None,
            status=data.get("status", "completed"),
            completed_at=datetime.fromisoformat(data["completed_at"]),
        )


@dataclass
class InvoiceRecord:
    """Invoice stub awaiting the fiscal authority.

    ``invoice_number`` stays empty until the store assigns one at commit.
    """

    payment_id: str
    tax_id: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    invoice_number: str = ""
    customer_name: str = DEFAULT_CUSTOMER
    traceability_code: str = field(default_factory=lambda: f"TEMP-{uuid.uuid4()}")
    external_status: str = "pending"
    created_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "payment_id": self.payment_id,
            "invoice_number": self.invoice_number,
            "tax_id": self.tax_id,
            "customer_name": self.customer_name,
            "subtotal": money(self.subtotal),
            "tax": money(self.tax),
            "total": money(self.total),
            "traceability_code": self.traceability_code,
            "external_status": self.external_status,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InvoiceRecord":
        return cls(
            id=data["id"],
            payment_id=data["payment_id"],
            invoice_number=data["invoice_number"],
            tax_id=data["tax_id"],
            customer_name=data.get("customer_name", DEFAULT_CUSTOMER),
            subtotal=Decimal(str(data["subtotal"])),
            tax=Decimal(str(data["tax"])),
            total=Decimal(str(data["total"])),
            traceability_code=data["traceability_code"],
            external_status=data.get("external_status", "pending"),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


__all__ = [
    "Category",
    "InvoiceRecord",
    "OrderLine",
    "PaymentRecord",
    "Product",
    "Table",
    "new_id",
    "utcnow",
]
