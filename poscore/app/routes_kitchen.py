"""Kitchen dispatch endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field, field_validator

from .deps.services import get_kitchen
from .services.kitchen import KitchenDispatch
from .utils.responses import ok

router = APIRouter(prefix="/api/orders", tags=["kitchen"])


class KitchenTicketRequest(BaseModel):
    """Payload for sending a table's order to the kitchen.

    The field names used by the older Spanish tills are accepted as aliases.
    """

    table_id: int = Field(..., validation_alias=AliasChoices("table_id", "mesa_id"))
    waiter_id: str = Field(..., validation_alias=AliasChoices("waiter_id", "mesero_id"))
    party_size: int | None = Field(
        None, validation_alias=AliasChoices("party_size", "numberOfPeople")
    )

    @field_validator("waiter_id", mode="before")
    @classmethod
    def _coerce_waiter_id(cls, v):
        return str(v) if isinstance(v, int) else v


@router.post("/send-to-kitchen")
async def send_to_kitchen(
    payload: KitchenTicketRequest, kitchen: KitchenDispatch = Depends(get_kitchen)
) -> dict:
    result = await kitchen.send_to_kitchen(
        payload.table_id, payload.waiter_id, payload.party_size
    )
    return ok(result.to_dict())
