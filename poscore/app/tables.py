"""Table registry: lookups and status changes for provisioned tables."""

from __future__ import annotations

import logging
from typing import Iterable, List

from .domain.records import Table
from .domain.table_status import TableStatus, can_transition, parse_status
from .errors import NotFoundError, ValidationError
from .repos.tables_repo import TablesRepo

logger = logging.getLogger("poscore.tables")


class TableRegistry:
    """Service wrapper around a :class:`TablesRepo`.

    Tables are provisioned once through :meth:`seed`; nothing here creates or
    deletes them afterwards.
    """

    def __init__(self, repo: TablesRepo) -> None:
        self.repo = repo

    async def seed(self, tables: Iterable[dict]) -> None:
        await self.repo.seed(
            [
                Table(
                    id=int(t["id"]),
                    number=int(t.get("number", t["id"])),
                    capacity=int(t["capacity"]),
                    status=parse_status(t.get("status", TableStatus.AVAILABLE)),
                )
                for t in tables
            ]
        )

    async def get(self, table_id: int) -> Table:
        table = await self.repo.get(table_id)
        if table is None:
            raise NotFoundError(f"table {table_id} not found")
        return table

    async def list(self) -> List[Table]:
        return await self.repo.list()

    async def set_status(self, table_id: int, status: str | TableStatus) -> Table:
        try:
            target = parse_status(status)
        except ValueError:
            allowed = ", ".join(s.value for s in TableStatus)
            raise ValidationError(
                [f"unknown table status {status!r}; expected one of: {allowed}"]
            ) from None
        current = await self.get(table_id)
        if not can_transition(current.status, target):
            raise ValidationError(
                [f"table {table_id} cannot move from {current.status.value} to {target.value}"]
            )
        updated = await self.repo.set_status(table_id, target)
        if updated is None:
            raise NotFoundError(f"table {table_id} not found")
        if current.status is not target:
            logger.info(
                "table %s %s -> %s",
                table_id,
                current.status.value,
                target.value,
                extra={"table_id": table_id},
            )
        return updated
