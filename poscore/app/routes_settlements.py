"""Settlement endpoint."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field, field_validator

from .deps.services import get_settlement
from .domain.payment_methods import build_method, canonical_name
from .domain.settlement import SettlementRequest
from .pricing import DiscountType
from .services.settlement import SettlementCoordinator
from .utils.responses import ok

router = APIRouter(prefix="/api/settlements", tags=["settlements"])

METHODS = {"cash", "card_debit", "card_credit", "qr"}


class SettlementPayload(BaseModel):
    """Request body for ``POST /api/settlements``.

    Only the fields of the chosen ``payment_method`` are used: ``tendered``
    for cash, ``transaction_id`` for card terminals and ``reference`` for QR
    transfers.
    """

    table_id: int
    employee_id: str
    payment_method: str
    discount: Decimal = Decimal("0")
    discount_type: str = DiscountType.PERCENTAGE.value
    tip: Decimal = Decimal("0")
    tendered: Decimal | None = Field(
        None, validation_alias=AliasChoices("tendered", "cash_received")
    )
    transaction_id: str | None = None
    reference: str | None = None

    @field_validator("payment_method")
    @classmethod
    def _known_method(cls, v: str) -> str:
        name = canonical_name(v)
        if name not in METHODS:
            raise ValueError(
                f"payment_method must be one of {', '.join(sorted(METHODS))}"
            )
        return name

    @field_validator("discount_type")
    @classmethod
    def _known_discount_type(cls, v: str) -> str:
        try:
            return DiscountType(v.strip().lower()).value
        except ValueError:
            raise ValueError("discount_type must be 'percentage' or 'fixed'") from None

    def to_request(self) -> SettlementRequest:
        method = build_method(
            self.payment_method,
            {
                "tendered": self.tendered,
                "transaction_id": self.transaction_id,
                "reference": self.reference,
            },
        )
        return SettlementRequest(
            table_id=self.table_id,
            employee_id=self.employee_id,
            method=method,
            discount=self.discount,
            discount_type=DiscountType(self.discount_type),
            tip=self.tip,
        )


@router.post("")
async def settle(
    payload: SettlementPayload,
    coordinator: SettlementCoordinator = Depends(get_settlement),
) -> dict:
    """Complete the payment for a table.

    Retrying the same request returns the stored result with ``replayed``
    set instead of charging twice.
    """
    result = await coordinator.settle(payload.to_request())
    return ok(result.to_dict())
