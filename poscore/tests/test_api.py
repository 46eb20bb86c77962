"""HTTP surface: envelopes, status codes and the full table lifecycle."""

import pathlib
import sys

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from config import Settings  # noqa: E402
from poscore.app.main import create_app  # noqa: E402
from poscore.app.providers.catalog import CatalogProvider  # noqa: E402

from poscore.tests.fakes import FakeKitchen, FakeWorkflow  # noqa: E402


def _client(kitchen=None, **overrides):
    settings = Settings(database_url="", redis_url="", **overrides)
    app = create_app(
        settings,
        catalog=CatalogProvider(None),
        workflow=FakeWorkflow(),
        kitchen_client=kitchen or FakeKitchen(),
    )
    return TestClient(app)


@pytest.fixture
def client():
    with _client() as c:
        yield c


def test_tables_are_seeded(client):
    resp = client.get("/api/tables")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert len(body["data"]) == 8
    assert body["data"][0] == {"id": 1, "number": 1, "capacity": 4, "status": "available"}


def test_unknown_table_is_404_envelope(client):
    resp = client.get("/api/tables/99")
    assert resp.status_code == 404
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "NOT_FOUND"
    assert "request_id" in body


def test_status_override_accepts_spanish(client):
    resp = client.put("/api/tables/3/status", json={"status": "reservada"})
    assert resp.json()["data"]["status"] == "reserved"
    bad = client.put("/api/tables/3/status", json={"status": "broken"})
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "VALIDATION_FAILED"


def test_menu_endpoints(client):
    assert len(client.get("/api/categories").json()["data"]) == 3
    drinks = client.get("/api/products", params={"category_id": "2"}).json()["data"]
    assert [p["id"] for p in drinks] == [4, 5, 6]
    assert client.get("/api/products/1").json()["data"]["price"] == "24.50"
    assert client.get("/api/products/404").status_code == 404


def test_order_line_lifecycle(client):
    added = client.post("/api/order-lines", json={"table_id": 1, "product_id": 1, "quantity": 2})
    assert added.status_code == 200
    line_id = added.json()["data"]["id"]
    client.post("/api/order-lines", json={"table_id": 1, "product_id": 4, "merge": True})
    client.post("/api/order-lines", json={"table_id": 1, "product_id": 4, "merge": True})

    listing = client.get("/api/order-lines", params={"table_id": 1}).json()["data"]
    assert listing["subtotal"] == "56.00"
    assert len(listing["lines"]) == 2
    assert client.get("/api/tables/1").json()["data"]["status"] == "occupied"

    wrong_table = client.put(f"/api/order-lines/{line_id}", json={"table_id": 2, "quantity": 5})
    assert wrong_table.status_code == 404
    updated = client.put(f"/api/order-lines/{line_id}", json={"table_id": 1, "quantity": 1})
    assert updated.json()["data"]["quantity"] == 1

    assert client.delete(f"/api/order-lines/{line_id}", params={"table_id": 1}).status_code == 200
    cleared = client.delete("/api/order-lines", params={"table_id": 1}).json()["data"]
    assert cleared == {"table_id": 1, "removed": 1}


def test_zero_quantity_is_rejected(client):
    resp = client.post("/api/order-lines", json={"table_id": 1, "product_id": 1, "quantity": 0})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["errors"]


def test_send_to_kitchen_with_legacy_fields(client):
    client.post("/api/order-lines", json={"table_id": 2, "product_id": 7})
    resp = client.post(
        "/api/orders/send-to-kitchen",
        json={"mesa_id": 2, "mesero_id": 15, "numberOfPeople": 2},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["lines_sent"] == 1
    assert data["units_sent"] == 1
    assert data["ledger_cleared"] is False

    empty = client.post("/api/orders/send-to-kitchen", json={"table_id": 3, "waiter_id": "w"})
    assert empty.status_code == 400
    assert empty.json()["error"]["code"] == "NO_ITEMS"


def test_kitchen_outage_is_502():
    with _client(kitchen=FakeKitchen(fail=True)) as c:
        c.post("/api/order-lines", json={"table_id": 2, "product_id": 7})
        resp = c.post("/api/orders/send-to-kitchen", json={"table_id": 2, "waiter_id": "w"})
        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "KITCHEN_UNAVAILABLE"


def test_settlement_and_replay(client):
    client.post("/api/order-lines", json={"table_id": 5, "product_id": 6, "quantity": 40})
    payload = {
        "table_id": 5,
        "employee_id": "emp-7",
        "payment_method": "datafono_credito",
        "transaction_id": "APR-7781",
        "discount": "10",
        "discount_type": "percentage",
        "tip": "5",
    }
    first = client.post("/api/settlements", json=payload)
    assert first.status_code == 200
    data = first.json()["data"]
    assert data["payment"]["amount"] == "102.20"
    assert data["payment"]["payment_method"] == "card_credit"
    assert data["replayed"] is False
    assert client.get("/api/tables/5").json()["data"]["status"] == "available"

    again = client.post("/api/settlements", json=payload).json()["data"]
    assert again["replayed"] is True
    assert again["payment"]["id"] == data["payment"]["id"]

    payment_id = data["payment"]["id"]
    assert client.get(f"/api/payments/{payment_id}").json()["data"]["amount"] == "102.20"
    invoice = client.get(f"/api/payments/{payment_id}/invoice").json()["data"]
    assert invoice["invoice_number"] == data["invoice"]["invoice_number"]

    report = client.get("/api/payments").json()["data"]
    assert report["count"] == 1
    assert report["by_method"]["card_credit"]["total"] == "102.20"


def test_cash_shortfall_is_400_with_errors(client):
    client.post("/api/order-lines", json={"table_id": 6, "product_id": 6, "quantity": 20})
    resp = client.post(
        "/api/settlements",
        json={"table_id": 6, "employee_id": "e", "payment_method": "efectivo", "cash_received": 50},
    )
    assert resp.status_code == 400
    errors = resp.json()["error"]["details"]["errors"]
    assert len(errors) == 1 and "54.00" in errors[0]


def test_unknown_payment_method_is_400(client):
    resp = client.post(
        "/api/settlements",
        json={"table_id": 1, "employee_id": "e", "payment_method": "cheque"},
    )
    assert resp.status_code == 400


def test_report_rejects_inverted_range(client):
    resp = client.get("/api/payments", params={"date": "2026-03-02", "end": "2026-03-01"})
    assert resp.status_code == 400


def test_settlement_route_absent_when_disabled():
    with _client(settlement_enabled=False, dispatch_clears_ledger=True) as c:
        assert c.post("/api/settlements", json={}).status_code == 404


def test_metrics_and_health(client):
    assert client.get("/health").json() == {"ok": True}
    text = client.get("/metrics").text
    assert "settlements_completed_total" in text
    assert "tables_occupied" in text


def test_request_id_is_echoed(client):
    resp = client.get("/api/tables", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


@pytest.mark.anyio
async def test_async_client_settlement_flow():
    settings = Settings(database_url="", redis_url="")
    workflow = FakeWorkflow(success=False)
    app = create_app(
        settings, catalog=CatalogProvider(None), workflow=workflow, kitchen_client=FakeKitchen()
    )
    transport = httpx.ASGITransport(app=app)
    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            await ac.post("/api/order-lines", json={"table_id": 8, "product_id": 3})
            resp = await ac.post(
                "/api/settlements",
                json={
                    "table_id": 8,
                    "employee_id": "e",
                    "payment_method": "qr_bancolombia",
                    "reference": "REF-998877",
                },
            )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["degraded"] is True
    assert data["payment"]["method_fields"] == {"reference": "REF-998877"}
    assert data["invoice"]["external_status"] == "pending"
