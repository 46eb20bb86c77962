"""Settlement coordinator.

A settlement turns the open order of a table into a completed payment and an
invoice stub, then frees the table. The steps run strictly in order while the
table lock is held:

1. replay a cached result for an identical request, unless the table has
   taken a new order since that result was committed;
2. load the table's order lines;
3. price them with server-side catalog prices;
4. validate the payment (and re-verify card transactions with the gateway);
5. notify the payment workflow, best effort;
6. commit payment, invoice, cleared ledger and freed table as one unit;
7. cache the result under the request fingerprint.

The run is detached from the caller and shielded, so a client that hangs up
mid-request cannot interrupt the commit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Set

from ..domain.payment_methods import Cash, Terminal, method_fields, method_name
from ..domain.records import InvoiceRecord, PaymentRecord, utcnow
from ..domain.settlement import SettlementRequest, SettlementResult
from ..errors import ConflictError, FatalCommitError, NoItemsError, NotFoundError, ValidationError
from ..idempotency import fingerprint
from ..locks import TableLocks
from ..pricing import DiscountType, PriceBreakdown, price, subtotal_of
from ..providers.card_gateway import verify
from ..routes_metrics import (
    settlement_commit_failures_total,
    settlement_replays_total,
    settlement_validation_failures_total,
    settlements_completed_total,
    settlements_degraded_total,
)
from ..tables import TableRegistry
from ..utils.invoice_counter import build_series
from ..validation import PaymentValidator

logger = logging.getLogger("poscore.settlement")


class SettlementCoordinator:
    def __init__(
        self,
        *,
        ledger_repo,
        tables: TableRegistry,
        payments,
        catalog,
        locks: TableLocks,
        idempotency,
        workflow,
        validator: PaymentValidator,
        tax_rate,
        currency: str = "COP",
        tax_id: str = "",
        invoice_prefix: str = "POS",
        invoice_reset: str = "monthly",
        card_gateway=None,
    ) -> None:
        self.ledger_repo = ledger_repo
        self.tables = tables
        self.payments = payments
        self.catalog = catalog
        self.locks = locks
        self.idempotency = idempotency
        self.workflow = workflow
        self.validator = validator
        self.tax_rate = tax_rate
        self.currency = currency
        self.tax_id = tax_id
        self.invoice_prefix = invoice_prefix
        self.invoice_reset = invoice_reset
        self.card_gateway = card_gateway
        self._inflight: Set[asyncio.Task] = set()

    async def settle(self, request: SettlementRequest) -> SettlementResult:
        """Settle the open order of ``request.table_id``.

        Raises :class:`NotFoundError`, :class:`ValidationError` (including
        :class:`NoItemsError`) or :class:`FatalCommitError`. An identical
        request inside the retention window returns the earlier result with
        ``replayed`` set.
        """
        task = asyncio.ensure_future(self._run(request))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return await asyncio.shield(task)

    async def _run(self, request: SettlementRequest) -> SettlementResult:
        key = fingerprint(request)
        async with self.locks.hold(request.table_id):
            try:
                await self._check_replay(key, request.table_id)
            except ConflictError as exc:
                settlement_replays_total.inc()
                logger.info(
                    "settlement replayed", extra={"table_id": request.table_id}
                )
                result = exc.result
                result.replayed = True
                return result
            return await self._settle_locked(request, key)

    async def _check_replay(self, key: str, table_id: int) -> None:
        cached = await self.idempotency.get(key)
        if not cached:
            return
        # Lines ordered after the cached commit belong to a new party.
        if await self.ledger_repo.list_lines(table_id):
            await self.idempotency.discard(key)
            logger.info(
                "stale settlement result dropped, table has a new order",
                extra={"table_id": table_id},
            )
            return
        raise ConflictError(key, SettlementResult.from_dict(cached))

    async def _settle_locked(self, request: SettlementRequest, key: str) -> SettlementResult:
        table_id = request.table_id
        await self.tables.get(table_id)

        lines = await self.ledger_repo.list_lines(table_id)
        if not lines:
            raise NoItemsError(table_id)

        snapshot = await self.catalog.snapshot()
        items: List[Dict[str, Any]] = []
        for line in lines:
            product = snapshot.product(line.product_id)
            if product is None:
                raise NotFoundError(
                    f"product {line.product_id} on table {table_id} is no longer on the menu",
                    hint="Remove the line and add a current product",
                )
            items.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "quantity": line.quantity,
                    "unit_price": product.price,
                }
            )

        method = request.method
        breakdown = price(
            subtotal_of((i["quantity"], i["unit_price"]) for i in items),
            request.discount,
            request.discount_type,
            request.tip,
            self.tax_rate,
            tendered=method.tendered if isinstance(method, Cash) else None,
        )

        await self._validate(request, breakdown)

        payment = PaymentRecord(
            table_id=table_id,
            employee_id=request.employee_id.strip(),
            payment_method=method_name(method),
            amount=breakdown.final_total,
            subtotal=breakdown.subtotal,
            tax=breakdown.tax,
            tip=breakdown.tip,
            discount=breakdown.discount_amount,
            discount_type=DiscountType(request.discount_type).value,
            method_fields=method_fields(method),
            change=breakdown.change,
        )
        result = SettlementResult(
            payment=payment,
            invoice=InvoiceRecord(
                payment_id=payment.id,
                tax_id=self.tax_id,
                subtotal=breakdown.subtotal,
                tax=breakdown.tax,
                total=breakdown.final_total,
            ),
            breakdown=breakdown,
        )

        await self._externalize(result, items)

        series = build_series(
            self.invoice_prefix, self.invoice_reset, payment.completed_at.date()
        )
        try:
            await self.payments.commit_settlement(payment, result.invoice, series=series)
        except FatalCommitError:
            settlement_commit_failures_total.inc()
            raise
        settlements_completed_total.labels(method=payment.payment_method).inc()
        if result.degraded:
            settlements_degraded_total.inc()
        logger.info(
            "settlement committed payment=%s invoice=%s total=%s",
            payment.id,
            result.invoice.invoice_number,
            payment.amount,
            extra={"table_id": table_id},
        )

        await self._request_invoice(result)

        try:
            await self.idempotency.put(key, result.to_dict())
        except Exception:
            logger.exception(
                "could not cache settlement result", extra={"table_id": table_id}
            )
        return result

    async def _validate(self, request: SettlementRequest, breakdown: PriceBreakdown) -> None:
        outcome = self.validator.validate(request, breakdown)
        errors = list(outcome.errors)
        method = request.method
        if not errors and self.card_gateway is not None and isinstance(method, Terminal):
            intent = await self.card_gateway.fetch_intent(method.transaction_id)
            if intent is None:
                errors.append(
                    f"card transaction {method.transaction_id} is unknown to the gateway"
                )
            else:
                errors.extend(verify(intent, breakdown.final_total, self.currency))
        if errors:
            settlement_validation_failures_total.inc()
            raise ValidationError(errors)

    async def _externalize(self, result: SettlementResult, items: List[Dict[str, Any]]) -> None:
        payment = result.payment
        response = await self.workflow.process_payment(
            {
                "table_id": payment.table_id,
                "employee_id": payment.employee_id,
                "payment_method": payment.payment_method,
                "amount": payment.amount,
                "subtotal": payment.subtotal,
                "discount": payment.discount,
                "tax": payment.tax,
                "tax_rate": self.tax_rate,
                "tip": payment.tip,
                "currency": self.currency,
                "items": items,
                "timestamp": payment.completed_at.isoformat(),
            }
        )
        if response.success:
            result.execution_id = response.execution_id
            return
        result.degraded = True
        result.warnings.append(f"payment workflow unavailable: {response.error}")
        logger.warning(
            "payment workflow failed, committing locally: %s",
            response.error,
            extra={"table_id": payment.table_id},
        )

    async def _request_invoice(self, result: SettlementResult) -> None:
        invoice = result.invoice
        response = await self.workflow.generate_invoice(
            {
                "payment_id": invoice.payment_id,
                "invoice_number": invoice.invoice_number,
                "tax_id": invoice.tax_id,
                "customer_name": invoice.customer_name,
                "subtotal": invoice.subtotal,
                "tax": invoice.tax,
                "total": invoice.total,
                "traceability_code": invoice.traceability_code,
            }
        )
        if not response.success:
            result.warnings.append(f"invoice workflow unavailable: {response.error}")


__all__ = ["SettlementCoordinator"]
