"""Kitchen dispatch keeps the ledger and surfaces kitchen outages."""

import asyncio
import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from config import DEFAULT_TABLES  # noqa: E402
from poscore.app.domain.table_status import TableStatus  # noqa: E402
from poscore.app.errors import (  # noqa: E402
    KitchenDispatchError,
    NoItemsError,
    NotFoundError,
    ValidationError,
)
from poscore.tests.fakes import FakeKitchen, build_harness  # noqa: E402


@pytest.mark.anyio
async def test_dispatch_sends_ticket_and_keeps_lines(harness):
    await harness.ledger.add(1, 1, 2)
    await harness.ledger.add(1, 4, 3)

    result = await harness.kitchen.send_to_kitchen(1, "w-9", party_size=4)

    (ticket,) = harness.kitchen_client.tickets
    assert ticket["table_id"] == 1
    assert ticket["waiter_id"] == "w-9"
    assert ticket["party_size"] == 4
    assert ticket["lines"] == [
        {"product_id": 1, "quantity": 2},
        {"product_id": 4, "quantity": 3},
    ]
    assert result.ledger_cleared is False
    data = result.to_dict()
    assert data["lines_sent"] == 2
    assert data["units_sent"] == 5
    assert len(await harness.ledger.list(1)) == 2
    assert (await harness.tables.get(1)).status is TableStatus.OCCUPIED


@pytest.mark.anyio
async def test_empty_table_is_rejected(harness):
    with pytest.raises(NoItemsError):
        await harness.kitchen.send_to_kitchen(2, "w-1")
    assert harness.kitchen_client.tickets == []


@pytest.mark.anyio
async def test_unknown_table(harness):
    with pytest.raises(NotFoundError):
        await harness.kitchen.send_to_kitchen(42, "w-1")


@pytest.mark.anyio
@pytest.mark.parametrize("waiter,party", [("", None), ("   ", 2), ("w-1", 0)])
async def test_request_checks(harness, waiter, party):
    await harness.ledger.add(1, 1)
    with pytest.raises(ValidationError):
        await harness.kitchen.send_to_kitchen(1, waiter, party_size=party)


@pytest.mark.anyio
async def test_kitchen_outage_leaves_ledger_untouched():
    h = build_harness(kitchen_client=FakeKitchen(fail=True))
    await h.tables.seed(DEFAULT_TABLES)
    await h.ledger.add(3, 6, 2)

    with pytest.raises(KitchenDispatchError) as exc:
        await h.kitchen.send_to_kitchen(3, "w-1")
    assert exc.value.status_code == 502
    assert "timed out" in exc.value.message
    (view,) = await h.ledger.list(3)
    assert view.line.quantity == 2


@pytest.mark.anyio
async def test_duplicate_dispatch_sends_the_same_lines_twice(harness):
    await harness.ledger.add(2, 5, 1)
    await asyncio.gather(
        harness.kitchen.send_to_kitchen(2, "w-1"),
        harness.kitchen.send_to_kitchen(2, "w-1"),
    )
    assert len(harness.kitchen_client.tickets) == 2
    assert harness.kitchen_client.tickets[0] == harness.kitchen_client.tickets[1]
    assert len(await harness.ledger.list(2)) == 1


@pytest.mark.anyio
async def test_clearing_variant():
    h = build_harness(clear_on_dispatch=True)
    await h.tables.seed(DEFAULT_TABLES)
    await h.ledger.add(1, 7)
    result = await h.kitchen.send_to_kitchen(1, "w-2")
    assert result.ledger_cleared is True
    assert await h.ledger.list(1) == []
    with pytest.raises(NoItemsError):
        await h.kitchen.send_to_kitchen(1, "w-2")


@pytest.mark.anyio
async def test_status_failure_after_send_is_a_warning(harness, monkeypatch):
    await harness.ledger.add(1, 1)

    async def broken(table_id, status):
        raise RuntimeError("db gone")

    monkeypatch.setattr(harness.kitchen.tables, "set_status", broken)
    result = await harness.kitchen.send_to_kitchen(1, "w-1")
    assert result.warnings == ["table status could not be updated"]
    assert len(harness.kitchen_client.tickets) == 1
