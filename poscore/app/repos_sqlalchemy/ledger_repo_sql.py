"""SQLAlchemy-backed order line storage."""

from __future__ import annotations

from typing import List

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..domain.records import OrderLine
from ..models import OrderLine as OrderLineRow
from ..repos.ledger_repo import LedgerRepo


def _to_record(row: OrderLineRow) -> OrderLine:
    return OrderLine(
        id=row.id,
        table_id=row.table_id,
        product_id=row.product_id,
        quantity=row.quantity,
    )


class SqlLedgerRepo(LedgerRepo):
    def __init__(self, sessionmaker: async_sessionmaker) -> None:
        self.sessionmaker = sessionmaker

    async def list_lines(self, table_id: int) -> List[OrderLine]:
        async with self.sessionmaker() as session:
            result = await session.execute(
                select(OrderLineRow)
                .where(OrderLineRow.table_id == table_id)
                .order_by(OrderLineRow.seq)
            )
            return [_to_record(row) for row in result.scalars()]

    async def get_line(self, line_id: str) -> OrderLine | None:
        async with self.sessionmaker() as session:
            row = await session.get(OrderLineRow, line_id)
            return _to_record(row) if row else None

    async def insert_line(self, line: OrderLine) -> OrderLine:
        async with self.sessionmaker() as session, session.begin():
            last = await session.scalar(
                select(func.coalesce(func.max(OrderLineRow.seq), 0)).where(
                    OrderLineRow.table_id == line.table_id
                )
            )
            session.add(
                OrderLineRow(
                    id=line.id,
                    table_id=line.table_id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    seq=(last or 0) + 1,
                )
            )
        return line

    async def update_quantity(self, line_id: str, quantity: int) -> None:
        async with self.sessionmaker() as session, session.begin():
            await session.execute(
                update(OrderLineRow)
                .where(OrderLineRow.id == line_id)
                .values(quantity=quantity)
            )

    async def delete_line(self, line_id: str) -> None:
        async with self.sessionmaker() as session, session.begin():
            await session.execute(delete(OrderLineRow).where(OrderLineRow.id == line_id))

    async def clear(self, table_id: int) -> int:
        async with self.sessionmaker() as session, session.begin():
            result = await session.execute(
                delete(OrderLineRow).where(OrderLineRow.table_id == table_id)
            )
            return result.rowcount or 0
