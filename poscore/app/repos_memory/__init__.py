"""In-memory repository implementations.

Used when no ``database_url`` is configured and by most tests. All state lives
in a :class:`MemoryState` shared by the three repositories so a settlement
commit can touch payments, lines and tables together.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..domain.records import InvoiceRecord, OrderLine, PaymentRecord, Table
from ..domain.table_status import TableStatus
from ..errors import FatalCommitError
from ..repos.ledger_repo import LedgerRepo
from ..repos.payments_repo import PaymentsRepo
from ..repos.tables_repo import TablesRepo
from ..utils.invoice_counter import MemoryInvoiceCounter

logger = logging.getLogger("poscore.store")


@dataclass
class MemoryState:
    tables: Dict[int, Table] = field(default_factory=dict)
    # Insertion-ordered; dicts keep order.
    lines: Dict[str, OrderLine] = field(default_factory=dict)
    payments: Dict[str, PaymentRecord] = field(default_factory=dict)
    invoices: Dict[str, InvoiceRecord] = field(default_factory=dict)
    counter: MemoryInvoiceCounter = field(default_factory=MemoryInvoiceCounter)


class MemoryLedgerRepo(LedgerRepo):
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def list_lines(self, table_id: int) -> List[OrderLine]:
        return [
            copy.copy(line)
            for line in self.state.lines.values()
            if line.table_id == table_id
        ]

    async def get_line(self, line_id: str) -> OrderLine | None:
        line = self.state.lines.get(line_id)
        return copy.copy(line) if line else None

    async def insert_line(self, line: OrderLine) -> OrderLine:
        self.state.lines[line.id] = copy.copy(line)
        return line

    async def update_quantity(self, line_id: str, quantity: int) -> None:
        self.state.lines[line_id].quantity = quantity

    async def delete_line(self, line_id: str) -> None:
        self.state.lines.pop(line_id, None)

    async def clear(self, table_id: int) -> int:
        doomed = [lid for lid, line in self.state.lines.items() if line.table_id == table_id]
        for lid in doomed:
            del self.state.lines[lid]
        return len(doomed)


class MemoryTablesRepo(TablesRepo):
    def __init__(self, state: MemoryState) -> None:
        self.state = state

    async def get(self, table_id: int) -> Table | None:
        table = self.state.tables.get(table_id)
        return copy.copy(table) if table else None

    async def list(self) -> List[Table]:
        return [copy.copy(self.state.tables[k]) for k in sorted(self.state.tables)]

    async def set_status(self, table_id: int, status: TableStatus) -> Table | None:
        table = self.state.tables.get(table_id)
        if table is None:
            return None
        table.status = status
        return copy.copy(table)

    async def seed(self, tables: List[Table]) -> None:
        for table in tables:
            self.state.tables.setdefault(table.id, copy.copy(table))


class MemoryPaymentsRepo(PaymentsRepo):
    """Payments store that applies a settlement as a single unit.

    The table's lines and status are snapshotted first and restored if any
    step fails.
    """

    def __init__(
        self,
        state: MemoryState,
        ledger: MemoryLedgerRepo,
        tables: MemoryTablesRepo,
    ) -> None:
        self.state = state
        self.ledger = ledger
        self.tables = tables

    async def commit_settlement(
        self, payment: PaymentRecord, invoice: InvoiceRecord, *, series: str
    ) -> InvoiceRecord:
        table_id = payment.table_id
        saved_lines = dict(self.state.lines)
        saved_table = copy.copy(self.state.tables.get(table_id))
        try:
            invoice.invoice_number = self.state.counter.peek(series)
            self.state.payments[payment.id] = payment
            self.state.invoices[payment.id] = invoice
            await self.ledger.clear(table_id)
            if await self.tables.set_status(table_id, TableStatus.AVAILABLE) is None:
                raise LookupError(f"table {table_id} vanished during commit")
            self.state.counter.advance(series)
        except Exception as exc:
            self.state.lines = saved_lines
            self.state.payments.pop(payment.id, None)
            self.state.invoices.pop(payment.id, None)
            if saved_table is not None:
                self.state.tables[table_id] = saved_table
            invoice.invoice_number = ""
            logger.exception("settlement commit failed", extra={"table_id": table_id})
            raise FatalCommitError(table_id) from exc
        return invoice

    async def get_payment(self, payment_id: str) -> PaymentRecord | None:
        return self.state.payments.get(payment_id)

    async def get_invoice_for_payment(self, payment_id: str) -> InvoiceRecord | None:
        return self.state.invoices.get(payment_id)

    async def list_payments(self, start, end) -> List[PaymentRecord]:
        return sorted(
            (
                p
                for p in self.state.payments.values()
                if start <= p.completed_at < end
            ),
            key=lambda p: p.completed_at,
        )


__all__ = [
    "MemoryLedgerRepo",
    "MemoryPaymentsRepo",
    "MemoryState",
    "MemoryTablesRepo",
]
