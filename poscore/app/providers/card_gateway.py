"""Read-only client for the card payment gateway.

Terminal payments carry the gateway's transaction id. Before a settlement is
committed the intent is fetched and its amount, currency and status compared
with the bill.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List

import httpx

from ..errors import ExternalServiceDegraded
from ..pricing import round2

SERVICE = "card_gateway"


@dataclass(frozen=True)
class GatewayIntent:
    id: str
    amount: Decimal
    currency: str
    status: str


def verify(intent: GatewayIntent, amount: Decimal, currency: str) -> List[str]:
    """Return the mismatches between ``intent`` and the bill."""

    errors: List[str] = []
    if intent.status != "succeeded":
        errors.append(f"card transaction {intent.id} is {intent.status}, not succeeded")
    if round2(intent.amount) != round2(amount):
        errors.append(
            f"card transaction amount {round2(intent.amount)} does not match total {round2(amount)}"
        )
    if intent.currency.upper() != currency.upper():
        errors.append(
            f"card transaction currency {intent.currency} does not match {currency}"
        )
    return errors


class HttpCardGateway:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def fetch_intent(self, transaction_id: str) -> GatewayIntent | None:
        """Return the intent for ``transaction_id`` or ``None`` if unknown."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                resp = await client.get(f"{self.base_url}/intents/{transaction_id}")
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            data = resp.json()
            return GatewayIntent(
                id=str(data["id"]),
                amount=Decimal(str(data["amount"])),
                currency=str(data["currency"]),
                status=str(data["status"]),
            )
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            raise ExternalServiceDegraded(
                SERVICE, f"could not verify card transaction: {exc}"
            ) from exc
