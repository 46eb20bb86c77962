"""Kitchen webhook and card gateway HTTP clients."""

import pathlib
import sys
from decimal import Decimal

import httpx
import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from poscore.app.errors import ExternalServiceDegraded  # noqa: E402
from poscore.app.providers.card_gateway import (  # noqa: E402
    GatewayIntent,
    HttpCardGateway,
    verify,
)
from poscore.app.providers.kitchen import KitchenTicketClient  # noqa: E402

TICKET = {"table_id": 1, "waiter_id": "w", "party_size": None, "lines": []}


def _kitchen(handler):
    return KitchenTicketClient("http://kitchen.test/hook", transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_kitchen_ticket_is_posted():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"status": "queued"})

    assert await _kitchen(handler).send(TICKET) == {"status": "queued"}
    assert seen[0].method == "POST"


@pytest.mark.anyio
async def test_kitchen_error_message_from_json():
    client = _kitchen(lambda r: httpx.Response(503, json={"message": "printer offline"}))
    with pytest.raises(ExternalServiceDegraded) as exc:
        await client.send(TICKET)
    assert exc.value.message == "kitchen: printer offline"


@pytest.mark.anyio
async def test_kitchen_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ExternalServiceDegraded) as exc:
        await _kitchen(handler).send(TICKET)
    assert exc.value.message == "kitchen: timed out contacting the kitchen"


@pytest.mark.anyio
async def test_kitchen_without_url():
    with pytest.raises(ExternalServiceDegraded) as exc:
        await KitchenTicketClient(None).send(TICKET)
    assert "not configured" in exc.value.message


def _gateway(handler):
    return HttpCardGateway("http://gw.test/", transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_gateway_fetches_intent():
    def handler(request):
        assert request.url.path == "/intents/APR-1"
        return httpx.Response(
            200, json={"id": "APR-1", "amount": 54.0, "currency": "COP", "status": "succeeded"}
        )

    intent = await _gateway(handler).fetch_intent("APR-1")
    assert intent == GatewayIntent("APR-1", Decimal("54.0"), "COP", "succeeded")
    assert verify(intent, Decimal("54.00"), "cop") == []


@pytest.mark.anyio
async def test_gateway_unknown_and_unreachable():
    assert await _gateway(lambda r: httpx.Response(404)).fetch_intent("x") is None
    with pytest.raises(ExternalServiceDegraded):
        await _gateway(lambda r: httpx.Response(500)).fetch_intent("x")


def test_verify_reports_every_mismatch():
    intent = GatewayIntent("APR-2", Decimal("10"), "USD", "pending")
    errors = verify(intent, Decimal("12.00"), "COP")
    assert len(errors) == 3
