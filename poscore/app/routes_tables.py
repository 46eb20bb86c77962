"""Dining table endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .deps.services import get_tables
from .tables import TableRegistry
from .utils.responses import ok

router = APIRouter(prefix="/api/tables", tags=["tables"])


class StatusUpdate(BaseModel):
    """New status for a table; Spanish labels are accepted too."""

    status: str


@router.get("")
async def list_tables(tables: TableRegistry = Depends(get_tables)) -> dict:
    return ok([t.to_dict() for t in await tables.list()])


@router.get("/{table_id}")
async def get_table(table_id: int, tables: TableRegistry = Depends(get_tables)) -> dict:
    table = await tables.get(table_id)
    return ok(table.to_dict())


@router.put("/{table_id}/status")
async def update_status(
    table_id: int,
    payload: StatusUpdate,
    tables: TableRegistry = Depends(get_tables),
) -> dict:
    """Manually override the status of ``table_id``."""
    table = await tables.set_status(table_id, payload.status)
    return ok(table.to_dict())
