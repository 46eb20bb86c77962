"""SQLAlchemy-backed payments and invoice stubs.

``commit_settlement`` performs the whole settlement in one transaction: the
invoice counter bump, the payment and invoice rows, deleting the table's
order lines and freeing the table. Any database error rolls everything back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..domain.records import InvoiceRecord, PaymentRecord
from ..domain.table_status import TableStatus
from ..errors import FatalCommitError
from ..models import Invoice, OrderLine, Payment, Table
from ..repos.payments_repo import PaymentsRepo
from ..utils.invoice_counter import next_invoice_number

logger = logging.getLogger("poscore.store")


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive timestamps; everything is stored in UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _payment_record(row: Payment) -> PaymentRecord:
    return PaymentRecord(
        id=row.id,
        table_id=row.table_id,
        employee_id=row.employee_id,
        payment_method=row.payment_method,
        amount=Decimal(row.amount),
        subtotal=Decimal(row.subtotal),
        tax=Decimal(row.tax),
        tip=Decimal(row.tip),
        discount=Decimal(row.discount),
        discount_type=row.discount_type,
        method_fields=dict(row.method_fields or {}),
        change=Decimal(row.change) if row.change is not None else None,
        status=row.status,
        completed_at=_aware(row.completed_at),
    )


def _invoice_record(row: Invoice) -> InvoiceRecord:
    return InvoiceRecord(
        id=row.id,
        payment_id=row.payment_id,
        invoice_number=row.invoice_number,
        tax_id=row.tax_id,
        customer_name=row.customer_name,
        subtotal=Decimal(row.subtotal),
        tax=Decimal(row.tax),
        total=Decimal(row.total),
        traceability_code=row.traceability_code,
        external_status=row.external_status,
        created_at=_aware(row.created_at),
    )


class SqlPaymentsRepo(PaymentsRepo):
    def __init__(self, sessionmaker: async_sessionmaker) -> None:
        self.sessionmaker = sessionmaker

    async def commit_settlement(
        self, payment: PaymentRecord, invoice: InvoiceRecord, *, series: str
    ) -> InvoiceRecord:
        table_id = payment.table_id
        try:
            async with self.sessionmaker() as session, session.begin():
                number = await next_invoice_number(session, series)
                session.add(
                    Payment(
                        id=payment.id,
                        table_id=table_id,
                        employee_id=payment.employee_id,
                        payment_method=payment.payment_method,
                        amount=payment.amount,
                        subtotal=payment.subtotal,
                        tax=payment.tax,
                        tip=payment.tip,
                        discount=payment.discount,
                        discount_type=payment.discount_type,
                        method_fields=payment.method_fields,
                        change=payment.change,
                        status=payment.status,
                        completed_at=payment.completed_at,
                    )
                )
                await session.flush()
                session.add(
                    Invoice(
                        id=invoice.id,
                        payment_id=payment.id,
                        invoice_number=number,
                        tax_id=invoice.tax_id,
                        customer_name=invoice.customer_name,
                        subtotal=invoice.subtotal,
                        tax=invoice.tax,
                        total=invoice.total,
                        traceability_code=invoice.traceability_code,
                        external_status=invoice.external_status,
                        created_at=invoice.created_at,
                    )
                )
                await session.execute(
                    delete(OrderLine).where(OrderLine.table_id == table_id)
                )
                result = await session.execute(
                    update(Table)
                    .where(Table.id == table_id)
                    .values(status=TableStatus.AVAILABLE.value)
                )
                if result.rowcount != 1:
                    raise LookupError(f"table {table_id} vanished during commit")
        except (SQLAlchemyError, LookupError) as exc:
            logger.exception("settlement commit failed", extra={"table_id": table_id})
            raise FatalCommitError(table_id) from exc
        invoice.invoice_number = number
        return invoice

    async def get_payment(self, payment_id: str) -> PaymentRecord | None:
        async with self.sessionmaker() as session:
            row = await session.get(Payment, payment_id)
            return _payment_record(row) if row else None

    async def get_invoice_for_payment(self, payment_id: str) -> InvoiceRecord | None:
        async with self.sessionmaker() as session:
            result = await session.execute(
                select(Invoice).where(Invoice.payment_id == payment_id)
            )
            row = result.scalar_one_or_none()
            return _invoice_record(row) if row else None

    async def list_payments(self, start: datetime, end: datetime) -> List[PaymentRecord]:
        async with self.sessionmaker() as session:
            result = await session.execute(
                select(Payment)
                .where(Payment.completed_at >= start, Payment.completed_at < end)
                .order_by(Payment.completed_at)
            )
            return [_payment_record(row) for row in result.scalars()]
