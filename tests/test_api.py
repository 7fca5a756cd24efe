"""HTTP API tests using httpx against the ASGI app.

Run with: pytest tests/test_api.py -v
"""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from seatdesk.domain.models import Collection
from seatdesk.main import app
from seatdesk.services import inventory_service as svc
from seatdesk.api.routes import _snapshot_to_json, stream_collection


@pytest_asyncio.fixture
async def api_client(store, venue):
    app.state.store = store
    app.state.venue = venue
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _sell(api_client, seat_ids, booth="JHS", name="Alice", price=1200):
    return await api_client.post(
        "/api/sales",
        json={"booth_id": booth, "moderator_name": name, "seat_ids": seat_ids, "total_price": price},
    )


async def test_health(api_client):
    response = await api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_list_seats(api_client):
    response = await api_client.get("/api/seats")
    assert response.status_code == 200
    seats = {s["id"]: s for s in response.json()}
    assert len(seats) == 32
    assert seats["K1"]["status"] == "sold"


async def test_get_seat_not_found(api_client):
    response = await api_client.get("/api/seats/Z1")
    assert response.status_code == 404


async def test_confirm_sale(api_client):
    response = await _sell(api_client, ["G1", "G2"])

    assert response.status_code == 201
    data = response.json()
    assert data["kind"] == "sale"
    assert data["seat_ids"] == ["G1", "G2"]
    seat = (await api_client.get("/api/seats/G1")).json()
    assert seat["status"] == "sold"
    assert seat["sale_id"] == data["id"]


async def test_conflicting_sale_returns_409(api_client):
    await _sell(api_client, ["G1", "G2"])

    response = await _sell(api_client, ["G2", "G3"], booth="SHS", name="Bob")

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"
    assert (await api_client.get("/api/seats/G3")).json()["status"] == "available"


async def test_empty_sale_returns_400(api_client):
    response = await _sell(api_client, [])
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


async def test_malformed_body_returns_400(api_client):
    response = await api_client.post("/api/sales", json={"booth_id": "JHS"})
    assert response.status_code == 400


async def test_reservation_flow(api_client):
    response = await api_client.post(
        "/api/reservations",
        json={
            "sponsor_name": "Acme Corp",
            "package_id": "kapwa",
            "donation_amount": 10000,
            "seat_ids": ["V1", "V2"],
        },
    )
    assert response.status_code == 201
    reservation_id = response.json()["id"]

    packages = {p["id"]: p for p in (await api_client.get("/api/packages")).json()}
    assert packages["kapwa"]["slots_remaining"] == 4

    response = await api_client.delete(f"/api/transactions/{reservation_id}")
    assert response.status_code == 200
    assert response.json()["transaction"]["kind"] == "sponsorship"

    packages = {p["id"]: p for p in (await api_client.get("/api/packages")).json()}
    assert packages["kapwa"]["slots_remaining"] == 5


async def test_capacity_exceeded_returns_409(api_client):
    body = {"sponsor_name": "Acme", "package_id": "paglingap", "donation_amount": 1, "seat_ids": ["V1"]}
    assert (await api_client.post("/api/reservations", json=body)).status_code == 201

    response = await api_client.post("/api/reservations", json={**body, "seat_ids": ["V2"]})

    assert response.status_code == 409
    assert response.json()["code"] == "CAPACITY_EXCEEDED"


async def test_unknown_package_returns_404(api_client):
    body = {"sponsor_name": "Acme", "package_id": "gold", "donation_amount": 1, "seat_ids": ["V1"]}
    response = await api_client.post("/api/reservations", json=body)
    assert response.status_code == 404


async def test_void_twice(api_client):
    sale_id = (await _sell(api_client, ["G1"], price=600)).json()["id"]

    assert (await api_client.delete(f"/api/transactions/{sale_id}")).status_code == 200
    assert (await api_client.delete(f"/api/transactions/{sale_id}")).status_code == 404


async def test_edit_transaction(api_client):
    sale_id = (await _sell(api_client, ["G1"], price=600)).json()["id"]

    response = await api_client.patch(
        f"/api/transactions/{sale_id}", json={"moderator_name": "Alicia", "total_price": 500}
    )

    assert response.status_code == 200
    assert response.json()["moderator_name"] == "Alicia"
    assert response.json()["total_price"] == 500


async def test_edit_rejects_seat_changes(api_client):
    sale_id = (await _sell(api_client, ["G1"], price=600)).json()["id"]

    response = await api_client.patch(f"/api/transactions/{sale_id}", json={"seat_ids": ["G2"]})

    assert response.status_code == 400


async def test_transactions_log_newest_first(api_client):
    first = (await _sell(api_client, ["G1"], price=600)).json()["id"]
    second = (await _sell(api_client, ["G2"], price=600)).json()["id"]

    response = await api_client.get("/api/transactions")

    assert [t["id"] for t in response.json()] == [second, first]


async def test_dashboard(api_client):
    await _sell(api_client, ["G1", "P1"], price=1100)

    data = (await api_client.get("/api/dashboard")).json()

    assert data["total_revenue"] == 1100
    assert data["total_tickets_sold"] == 2
    assert data["category_stats"]["Ginto"] == {"sold": 1, "total": 10}
    assert {p["package_id"] for p in data["packages"]} == {"kapwa", "paglingap"}


async def test_seed_is_idempotent(api_client):
    response = await api_client.post("/api/venue/seed")
    assert response.status_code == 200
    assert response.json() == {"seats_created": 0}


async def test_snapshot_json_for_stream(store):
    seats = await store.snapshot(Collection.SEATS)
    payload = _snapshot_to_json(Collection.SEATS, seats)
    assert '"id": "G1"' in payload
    assert _snapshot_to_json(Collection.TRANSACTIONS, []) == "[]"


@pytest.mark.parametrize("booth", ["JHS/2", "JHS 2", "B" * 51])
async def test_sale_with_unsafe_booth_returns_400(api_client, booth):
    response = await _sell(api_client, ["G1"], booth=booth, price=600)

    assert response.status_code == 400
    assert (await api_client.get("/api/seats/G1")).json()["status"] == "available"


async def test_overlong_names_return_400(api_client):
    response = await _sell(api_client, ["G1"], name="A" * 256, price=600)
    assert response.status_code == 400

    body = {"sponsor_name": "A" * 256, "package_id": "kapwa", "donation_amount": 1, "seat_ids": ["V1"]}
    response = await api_client.post("/api/reservations", json=body)
    assert response.status_code == 400


async def test_edit_to_unsafe_booth_returns_400(api_client):
    sale_id = (await _sell(api_client, ["G1"], price=600)).json()["id"]

    response = await api_client.patch(f"/api/transactions/{sale_id}", json={"booth_id": "JHS/2"})

    assert response.status_code == 400


async def test_sale_with_dashed_booth_can_be_voided(api_client):
    sale_id = (await _sell(api_client, ["G1"], booth="JHS-2_b", price=600)).json()["id"]

    response = await api_client.delete(f"/api/transactions/{sale_id}")

    assert response.status_code == 200
    assert response.json()["transaction"]["booth_id"] == "JHS-2_b"


async def test_stream_sends_snapshot_then_updates(store):
    response = await stream_collection(Collection.PACKAGES, store)
    events = response.body_iterator

    first = await events.__anext__()
    await svc.reserve_package(store, "Acme Corp", "kapwa", 10000, ["V1"])
    second = await events.__anext__()
    await events.aclose()

    assert first["event"] == "packages"
    initial = {p["id"]: p for p in json.loads(first["data"])}
    updated = {p["id"]: p for p in json.loads(second["data"])}
    assert initial["kapwa"]["slots_remaining"] == 5
    assert updated["kapwa"]["slots_remaining"] == 4
    assert not store.has_subscribers(Collection.PACKAGES)


async def test_stream_subscribes_only_when_started(store):
    response = await stream_collection(Collection.SEATS, store)

    assert not store.has_subscribers(Collection.SEATS)

    await response.body_iterator.__anext__()
    assert store.has_subscribers(Collection.SEATS)
    await response.body_iterator.aclose()
    assert not store.has_subscribers(Collection.SEATS)
