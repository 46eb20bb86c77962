"""Order line endpoints.

Every call names the owning table; a line id used with another table's id is
reported as not found.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from .deps.services import get_ledger
from .ledger import OrderLedger
from .pricing import money
from .utils.responses import ok

router = APIRouter(prefix="/api/order-lines", tags=["order-lines"])


class NewLine(BaseModel):
    table_id: int
    product_id: int
    quantity: int = Field(1, ge=1)
    # Merge into an existing line for the same product instead of adding one.
    merge: bool = False


class QuantityUpdate(BaseModel):
    table_id: int
    quantity: int = Field(..., ge=1)


@router.get("")
async def list_lines(
    table_id: int = Query(...), ledger: OrderLedger = Depends(get_ledger)
) -> dict:
    views = await ledger.list(table_id)
    totals = [v.line_total for v in views if v.line_total is not None]
    return ok(
        {
            "table_id": table_id,
            "lines": [v.to_dict() for v in views],
            "subtotal": money(sum(totals)) if totals else money(0),
        }
    )


@router.post("")
async def add_line(payload: NewLine, ledger: OrderLedger = Depends(get_ledger)) -> dict:
    if payload.merge:
        line = await ledger.add_or_increment(
            payload.table_id, payload.product_id, payload.quantity
        )
    else:
        line = await ledger.add(payload.table_id, payload.product_id, payload.quantity)
    return ok(line.to_dict())


@router.put("/{line_id}")
async def update_line(
    line_id: str, payload: QuantityUpdate, ledger: OrderLedger = Depends(get_ledger)
) -> dict:
    line = await ledger.set_quantity(line_id, payload.table_id, payload.quantity)
    return ok(line.to_dict())


@router.delete("/{line_id}")
async def delete_line(
    line_id: str,
    table_id: int = Query(...),
    ledger: OrderLedger = Depends(get_ledger),
) -> dict:
    await ledger.remove(line_id, table_id)
    return ok({"deleted": line_id})


@router.delete("")
async def clear_lines(
    table_id: int = Query(...), ledger: OrderLedger = Depends(get_ledger)
) -> dict:
    """Drop every open line of ``table_id`` without settling."""
    removed = await ledger.clear(table_id)
    return ok({"table_id": table_id, "removed": removed})
