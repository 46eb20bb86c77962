"""Send a table's open order to the kitchen."""

from __future__ import annotations

import logging

from ..domain.settlement import DispatchResult
from ..domain.table_status import TableStatus
from ..errors import ExternalServiceDegraded, KitchenDispatchError, NoItemsError, ValidationError
from ..locks import TableLocks
from ..routes_metrics import kitchen_dispatch_total
from ..tables import TableRegistry

logger = logging.getLogger("poscore.kitchen")


class KitchenDispatch:
    """Forward the ledger snapshot of a table as a kitchen ticket.

    The ledger is left in place unless ``clear_ledger`` is set, which is only
    allowed in deployments without settlement.
    """

    def __init__(
        self,
        *,
        ledger_repo,
        tables: TableRegistry,
        locks: TableLocks,
        client,
        clear_ledger: bool = False,
    ) -> None:
        self.ledger_repo = ledger_repo
        self.tables = tables
        self.locks = locks
        self.client = client
        self.clear_ledger = clear_ledger

    async def send_to_kitchen(
        self, table_id: int, waiter_id: str, party_size: int | None = None
    ) -> DispatchResult:
        if not str(waiter_id or "").strip():
            raise ValidationError(["waiter id is required"])
        if party_size is not None and party_size < 1:
            raise ValidationError(["party size must be at least 1"])

        async with self.locks.hold(table_id):
            await self.tables.get(table_id)
            lines = await self.ledger_repo.list_lines(table_id)
            if not lines:
                raise NoItemsError(table_id)

            ticket = {
                "table_id": table_id,
                "waiter_id": str(waiter_id).strip(),
                "party_size": party_size,
                "lines": [
                    {"product_id": line.product_id, "quantity": line.quantity}
                    for line in lines
                ],
            }
            try:
                await self.client.send(ticket)
            except ExternalServiceDegraded as exc:
                kitchen_dispatch_total.labels(outcome="failed").inc()
                logger.warning(
                    "kitchen dispatch failed: %s", exc.message, extra={"table_id": table_id}
                )
                raise KitchenDispatchError(exc.message) from exc
            kitchen_dispatch_total.labels(outcome="ok").inc()

            result = DispatchResult(table_id=table_id, lines=lines)
            try:
                await self.tables.set_status(table_id, TableStatus.OCCUPIED)
            except Exception:
                # The ticket is already in the kitchen; keep going.
                logger.exception(
                    "could not mark table occupied after dispatch",
                    extra={"table_id": table_id},
                )
                result.warnings.append("table status could not be updated")

            if self.clear_ledger:
                await self.ledger_repo.clear(table_id)
                result.ledger_cleared = True
            return result


__all__ = ["KitchenDispatch"]
