"""Test doubles and a wiring helper for the service layer."""

from dataclasses import dataclass
from decimal import Decimal

from poscore.app.errors import ExternalServiceDegraded
from poscore.app.idempotency import MemoryIdempotencyStore
from poscore.app.ledger import OrderLedger
from poscore.app.locks import TableLocks
from poscore.app.providers.catalog import CatalogProvider
from poscore.app.providers.workflow import WorkflowResponse
from poscore.app.repos_memory import (
    MemoryLedgerRepo,
    MemoryPaymentsRepo,
    MemoryState,
    MemoryTablesRepo,
)
from poscore.app.services.kitchen import KitchenDispatch
from poscore.app.services.settlement import SettlementCoordinator
from poscore.app.tables import TableRegistry
from poscore.app.validation import PaymentValidator


class FakeWorkflow:
    """Records workflow calls and answers with a fixed outcome."""

    base_url = "http://workflow.test"

    def __init__(self, success: bool = True) -> None:
        self.success = success
        self.calls: list[tuple[str, dict]] = []

    async def _answer(self, name: str, data: dict) -> WorkflowResponse:
        self.calls.append((name, data))
        if self.success:
            return WorkflowResponse(success=True, execution_id=f"exec-{len(self.calls)}")
        return WorkflowResponse(success=False, error="connection refused")

    async def process_payment(self, payment: dict) -> WorkflowResponse:
        return await self._answer("payment", payment)

    async def generate_invoice(self, invoice: dict) -> WorkflowResponse:
        return await self._answer("invoice", invoice)

    async def check_health(self) -> bool:
        return self.success


class FakeKitchen:
    """Kitchen client that stores tickets or fails on demand."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.tickets: list[dict] = []

    async def send(self, ticket: dict):
        if self.fail:
            raise ExternalServiceDegraded("kitchen", "timed out contacting the kitchen")
        self.tickets.append(ticket)
        return {"status": "sent"}


@dataclass
class Harness:
    state: MemoryState
    tables: TableRegistry
    ledger: OrderLedger
    settlement: SettlementCoordinator
    kitchen: KitchenDispatch
    payments: MemoryPaymentsRepo
    workflow: FakeWorkflow
    kitchen_client: FakeKitchen
    idempotency: MemoryIdempotencyStore


def build_harness(
    *,
    workflow: FakeWorkflow | None = None,
    kitchen_client: FakeKitchen | None = None,
    card_gateway=None,
    clear_on_dispatch: bool = False,
) -> Harness:
    state = MemoryState()
    ledger_repo = MemoryLedgerRepo(state)
    tables_repo = MemoryTablesRepo(state)
    payments = MemoryPaymentsRepo(state, ledger_repo, tables_repo)
    locks = TableLocks()
    tables = TableRegistry(tables_repo)
    catalog = CatalogProvider(None)
    workflow = workflow or FakeWorkflow()
    kitchen_client = kitchen_client or FakeKitchen()
    idempotency = MemoryIdempotencyStore(ttl=600)
    settlement = SettlementCoordinator(
        ledger_repo=ledger_repo,
        tables=tables,
        payments=payments,
        catalog=catalog,
        locks=locks,
        idempotency=idempotency,
        workflow=workflow,
        validator=PaymentValidator(),
        tax_rate=Decimal("0.08"),
        currency="COP",
        tax_id="900123456-1",
        invoice_prefix="POS",
        invoice_reset="monthly",
        card_gateway=card_gateway,
    )
    kitchen = KitchenDispatch(
        ledger_repo=ledger_repo,
        tables=tables,
        locks=locks,
        client=kitchen_client,
        clear_ledger=clear_on_dispatch,
    )
    return Harness(
        state=state,
        tables=tables,
        ledger=OrderLedger(ledger_repo, tables, catalog, locks),
        settlement=settlement,
        kitchen=kitchen,
        payments=payments,
        workflow=workflow,
        kitchen_client=kitchen_client,
        idempotency=idempotency,
    )

