"""Domain models and helpers."""

from .payment_methods import QR, Cash, PaymentMethod, Terminal, TerminalKind
from .records import Category, InvoiceRecord, OrderLine, PaymentRecord, Product, Table
from .settlement import DispatchResult, SettlementRequest, SettlementResult
from .table_status import TRANSITIONS, TableStatus, can_transition, parse_status

__all__ = [
    "Cash",
    "Category",
    "DispatchResult",
    "InvoiceRecord",
    "OrderLine",
    "PaymentMethod",
    "PaymentRecord",
    "Product",
    "QR",
    "SettlementRequest",
    "SettlementResult",
    "TRANSITIONS",
    "Table",
    "TableStatus",
    "Terminal",
    "TerminalKind",
    "can_transition",
    "parse_status",
]
