"""SQLAlchemy-backed table storage."""

from __future__ import annotations

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..domain.records import Table
from ..domain.table_status import TableStatus
from ..models import Table as TableRow
from ..repos.tables_repo import TablesRepo


def _to_record(row: TableRow) -> Table:
    return Table(
        id=row.id,
        number=row.number,
        capacity=row.capacity,
        status=TableStatus(row.status),
    )


class SqlTablesRepo(TablesRepo):
    def __init__(self, sessionmaker: async_sessionmaker) -> None:
        self.sessionmaker = sessionmaker

    async def get(self, table_id: int) -> Table | None:
        async with self.sessionmaker() as session:
            row = await session.get(TableRow, table_id)
            return _to_record(row) if row else None

    async def list(self) -> List[Table]:
        async with self.sessionmaker() as session:
            result = await session.execute(select(TableRow).order_by(TableRow.id))
            return [_to_record(row) for row in result.scalars()]

    async def set_status(self, table_id: int, status: TableStatus) -> Table | None:
        async with self.sessionmaker() as session, session.begin():
            row = await session.get(TableRow, table_id)
            if row is None:
                return None
            row.status = TableStatus(status).value
            return _to_record(row)

    async def seed(self, tables: List[Table]) -> None:
        async with self.sessionmaker() as session, session.begin():
            existing = set(await session.scalars(select(TableRow.id)))
            for table in tables:
                if table.id in existing:
                    continue
                session.add(
                    TableRow(
                        id=table.id,
                        number=table.number,
                        capacity=table.capacity,
                        status=table.status.value,
                    )
                )
