"""Order ledger behaviour: scoping, merging and the occupancy safeguard."""

import asyncio
import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from poscore.app.domain.table_status import TableStatus  # noqa: E402
from poscore.app.errors import NotFoundError, ValidationError  # noqa: E402


@pytest.mark.anyio
async def test_first_line_marks_table_occupied(harness):
    assert (await harness.tables.get(2)).status is TableStatus.AVAILABLE
    await harness.ledger.add(2, 1)
    assert (await harness.tables.get(2)).status is TableStatus.OCCUPIED


@pytest.mark.anyio
async def test_reserved_table_becomes_occupied(harness):
    await harness.tables.set_status(4, "reservada")
    await harness.ledger.add(4, 6, 2)
    assert (await harness.tables.get(4)).status is TableStatus.OCCUPIED


@pytest.mark.anyio
async def test_add_never_merges(harness):
    await harness.ledger.add(1, 4)
    await harness.ledger.add(1, 4)
    views = await harness.ledger.list(1)
    assert [v.line.quantity for v in views] == [1, 1]


@pytest.mark.anyio
async def test_add_or_increment_merges(harness):
    first = await harness.ledger.add_or_increment(1, 4, 2)
    merged = await harness.ledger.add_or_increment(1, 4, 3)
    assert merged.id == first.id
    views = await harness.ledger.list(1)
    assert len(views) == 1
    assert views[0].line.quantity == 5


@pytest.mark.anyio
async def test_list_is_enriched_with_products(harness):
    await harness.ledger.add(1, 1, 2)
    (view,) = await harness.ledger.list(1)
    data = view.to_dict()
    assert data["product"]["name"] == "Paella Valenciana"
    assert data["line_total"] == "49.00"


@pytest.mark.anyio
async def test_mismatched_table_is_not_found_and_untouched(harness):
    line = await harness.ledger.add(1, 2, 1)
    with pytest.raises(NotFoundError):
        await harness.ledger.set_quantity(line.id, 2, 5)
    with pytest.raises(NotFoundError):
        await harness.ledger.remove(line.id, 2)
    (view,) = await harness.ledger.list(1)
    assert view.line.quantity == 1


@pytest.mark.anyio
async def test_set_quantity_and_remove(harness):
    line = await harness.ledger.add(5, 3, 1)
    updated = await harness.ledger.set_quantity(line.id, 5, 4)
    assert updated.quantity == 4
    await harness.ledger.remove(line.id, 5)
    assert await harness.ledger.list(5) == []


@pytest.mark.anyio
async def test_quantity_must_be_positive(harness):
    with pytest.raises(ValidationError):
        await harness.ledger.add(1, 1, 0)
    line = await harness.ledger.add(1, 1, 1)
    with pytest.raises(ValidationError):
        await harness.ledger.set_quantity(line.id, 1, 0)


@pytest.mark.anyio
async def test_unknown_table_or_product(harness):
    with pytest.raises(NotFoundError):
        await harness.ledger.add(99, 1)
    with pytest.raises(NotFoundError):
        await harness.ledger.add(1, 999)
    # a rejected add leaves the table as it was
    assert (await harness.tables.get(1)).status is TableStatus.AVAILABLE


@pytest.mark.anyio
async def test_clear(harness):
    await harness.ledger.add(3, 1)
    await harness.ledger.add(3, 2)
    assert await harness.ledger.clear(3) == 2
    assert await harness.ledger.list(3) == []


@pytest.mark.anyio
async def test_concurrent_first_lines_mark_occupancy_once(harness, monkeypatch):
    changes = []
    set_status = harness.ledger.tables.set_status

    async def recording(table_id, status):
        changes.append((table_id, status))
        return await set_status(table_id, status)

    monkeypatch.setattr(harness.ledger.tables, "set_status", recording)

    first, second = await asyncio.gather(
        harness.ledger.add(5, 1), harness.ledger.add(5, 4, 2)
    )

    assert changes == [(5, TableStatus.OCCUPIED)]
    assert {v.line.id for v in await harness.ledger.list(5)} == {first.id, second.id}
    assert (await harness.tables.get(5)).status is TableStatus.OCCUPIED
