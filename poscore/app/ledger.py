"""Order ledger: the open order lines of every table.

Every mutation runs under the table's lock and is scoped by ``table_id``; a
line id that belongs to another table is treated as unknown. Adding the first
line to a table that is not occupied flips it to ``occupied`` inside the same
critical section.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .domain.records import OrderLine, Product
from .domain.table_status import TableStatus
from .errors import NotFoundError, ValidationError
from .locks import TableLocks
from .pricing import money, round2
from .repos.ledger_repo import LedgerRepo
from .tables import TableRegistry


@dataclass
class LineView:
    """An order line joined with its current catalog product."""

    line: OrderLine
    product: Optional[Product]

    @property
    def line_total(self) -> Optional[Decimal]:
        if self.product is None:
            return None
        return round2(self.product.price * self.line.quantity)

    def to_dict(self) -> dict:
        total = self.line_total
        return {
            **self.line.to_dict(),
            "product": self.product.to_dict() if self.product else None,
            "line_total": money(total) if total is not None else None,
        }


def _check_quantity(quantity: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise ValidationError(["quantity must be a whole number of at least 1"])


class OrderLedger:
    def __init__(
        self,
        repo: LedgerRepo,
        tables: TableRegistry,
        catalog,
        locks: TableLocks,
    ) -> None:
        self.repo = repo
        self.tables = tables
        self.catalog = catalog
        self.locks = locks

    async def list(self, table_id: int) -> List[LineView]:
        await self.tables.get(table_id)
        lines = await self.repo.list_lines(table_id)
        views = []
        for line in lines:
            views.append(LineView(line, await self.catalog.get_product(line.product_id)))
        return views

    async def add(self, table_id: int, product_id: int, quantity: int = 1) -> OrderLine:
        """Insert a new line; never merges with existing ones."""
        _check_quantity(quantity)
        async with self.locks.hold(table_id):
            await self._prepare_add(table_id, product_id)
            return await self._insert(table_id, product_id, quantity)

    async def add_or_increment(
        self, table_id: int, product_id: int, quantity: int = 1
    ) -> OrderLine:
        """Merge into the first line for ``product_id`` or insert a new one."""
        _check_quantity(quantity)
        async with self.locks.hold(table_id):
            lines = await self._prepare_add(table_id, product_id)
            for line in lines:
                if line.product_id == product_id:
                    line.quantity += quantity
                    await self.repo.update_quantity(line.id, line.quantity)
                    return line
            return await self._insert(table_id, product_id, quantity)

    async def set_quantity(self, line_id: str, table_id: int, quantity: int) -> OrderLine:
        _check_quantity(quantity)
        async with self.locks.hold(table_id):
            line = await self._owned_line(line_id, table_id)
            await self.repo.update_quantity(line_id, quantity)
            line.quantity = quantity
            return line

    async def remove(self, line_id: str, table_id: int) -> None:
        async with self.locks.hold(table_id):
            await self._owned_line(line_id, table_id)
            await self.repo.delete_line(line_id)

    async def clear(self, table_id: int) -> int:
        async with self.locks.hold(table_id):
            return await self.repo.clear(table_id)

    async def _prepare_add(self, table_id: int, product_id: int) -> List[OrderLine]:
        table = await self.tables.get(table_id)
        if await self.catalog.get_product(product_id) is None:
            raise NotFoundError(f"product {product_id} not found")
        lines = await self.repo.list_lines(table_id)
        if not lines and table.status is not TableStatus.OCCUPIED:
            await self.tables.set_status(table_id, TableStatus.OCCUPIED)
        return lines

    async def _insert(self, table_id: int, product_id: int, quantity: int) -> OrderLine:
        line = OrderLine(table_id=table_id, product_id=product_id, quantity=quantity)
        return await self.repo.insert_line(line)

    async def _owned_line(self, line_id: str, table_id: int) -> OrderLine:
        line = await self.repo.get_line(line_id)
        if line is None or line.table_id != table_id:
            raise NotFoundError(f"order line {line_id} not found for table {table_id}")
        return line
