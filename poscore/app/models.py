"""Database models for tables, order lines, payments and invoices.

The models are kept free of application wiring so they can be created
directly by tests or by :func:`poscore.app.db.init_models`."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Table(Base):
    """Physical dining tables provisioned at startup."""

    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, autoincrement=False)
    number = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="available")


class OrderLine(Base):
    """Open order lines scoped to one table."""

    __tablename__ = "order_lines"

    id = Column(String(32), primary_key=True)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    # Preserves insertion order for merges and listings.
    seq = Column(Integer, nullable=False, default=0)


class Payment(Base):
    """Completed payments."""

    __tablename__ = "payments"

    id = Column(String(32), primary_key=True)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False)
    employee_id = Column(String, nullable=False)
    payment_method = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False)
    tip = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False)
    discount_type = Column(String, nullable=False)
    method_fields = Column(JSON, nullable=False, default=dict)
    change = Column(Numeric(12, 2), nullable=True)
    status = Column(String, nullable=False, default="completed")
    completed_at = Column(DateTime(timezone=True), nullable=False, index=True)


class Invoice(Base):
    """Invoice stubs pending fiscal authority approval."""

    __tablename__ = "invoices"

    id = Column(String(32), primary_key=True)
    payment_id = Column(
        String(32), ForeignKey("payments.id"), nullable=False, unique=True
    )
    invoice_number = Column(String, nullable=False, unique=True)
    tax_id = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    traceability_code = Column(String, nullable=False)
    external_status = Column(String, nullable=False, default="pending")
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class InvoiceCounter(Base):
    """Counters for generating sequential invoice numbers."""

    __tablename__ = "invoice_counters"

    id = Column(Integer, primary_key=True)
    series = Column(String, nullable=False, unique=True)
    current = Column(Integer, nullable=False, default=0)
