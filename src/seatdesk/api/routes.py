from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from seatdesk.api.schemas import (
    CategoryStatsResponse,
    DashboardResponse,
    PackageAvailabilityResponse,
    PackageResponse,
    ReservationCreateRequest,
    ReservationResponse,
    SaleCreateRequest,
    SaleResponse,
    SeatResponse,
    SeedResponse,
    TransactionResponse,
    TransactionUpdateRequest,
    VoidResponse,
    package_to_response,
    seat_to_response,
    transaction_to_response,
)
from seatdesk.domain.dashboard import compute_dashboard, package_availability
from seatdesk.domain.models import Collection
from seatdesk.domain.venue import VenueConfig
from seatdesk.infrastructure.store import InventoryStore
from seatdesk.services import inventory_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def get_store(request: Request) -> InventoryStore:
    return request.app.state.store


def get_venue(request: Request) -> VenueConfig:
    return request.app.state.venue


def _snapshot_to_json(collection: Collection, snapshot: Any) -> str:
    if collection is Collection.SEATS:
        items = [seat_to_response(s) for s in snapshot.values()]
    elif collection is Collection.PACKAGES:
        items = [package_to_response(p) for p in snapshot]
    else:
        items = [transaction_to_response(t) for t in snapshot]
    return json.dumps([item.model_dump(mode="json") for item in items])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/seats", response_model=list[SeatResponse])
async def list_seats(store: InventoryStore = Depends(get_store)) -> list[SeatResponse]:
    seats = await store.snapshot(Collection.SEATS)
    return [seat_to_response(s) for s in seats.values()]


@router.get("/seats/{seat_id}", response_model=SeatResponse)
async def get_seat(seat_id: str, store: InventoryStore = Depends(get_store)) -> SeatResponse:
    async with store.read() as r:
        seat = await r.seats.get(seat_id)
    if seat is None:
        raise HTTPException(status_code=404, detail="Seat not found")
    return seat_to_response(seat)


@router.get("/packages", response_model=list[PackageResponse])
async def list_packages(store: InventoryStore = Depends(get_store)) -> list[PackageResponse]:
    packages = await store.snapshot(Collection.PACKAGES)
    return [package_to_response(p) for p in packages]


@router.get("/transactions", response_model=list[TransactionResponse])
async def list_transactions(store: InventoryStore = Depends(get_store)) -> list[TransactionResponse]:
    transactions = await store.snapshot(Collection.TRANSACTIONS)
    return [transaction_to_response(t) for t in transactions]


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    store: InventoryStore = Depends(get_store),
    venue: VenueConfig = Depends(get_venue),
) -> DashboardResponse:
    seats = await store.snapshot(Collection.SEATS)
    packages = await store.snapshot(Collection.PACKAGES)
    summary = compute_dashboard(seats, venue)
    return DashboardResponse(
        total_revenue=summary.total_revenue,
        total_tickets_sold=summary.total_tickets_sold,
        category_stats={
            name: CategoryStatsResponse(sold=stats.sold, total=stats.total)
            for name, stats in summary.category_stats.items()
        },
        packages=[
            PackageAvailabilityResponse(
                package_id=a.package_id,
                name=a.name,
                slots_remaining=a.slots_remaining,
                total_slots=a.total_slots,
            )
            for a in package_availability(packages)
        ],
    )


@router.post("/sales", response_model=SaleResponse, status_code=201)
async def create_sale(
    body: SaleCreateRequest,
    store: InventoryStore = Depends(get_store),
) -> SaleResponse:
    sale = await inventory_service.confirm_sale(
        store,
        booth_id=body.booth_id,
        moderator_name=body.moderator_name,
        seat_ids=body.seat_ids,
        total_price=body.total_price,
    )
    return transaction_to_response(sale)


@router.post("/reservations", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    body: ReservationCreateRequest,
    store: InventoryStore = Depends(get_store),
) -> ReservationResponse:
    reservation = await inventory_service.reserve_package(
        store,
        sponsor_name=body.sponsor_name,
        package_id=body.package_id,
        donation_amount=body.donation_amount,
        seat_ids=body.seat_ids,
    )
    return transaction_to_response(reservation)


@router.patch("/transactions/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    body: TransactionUpdateRequest,
    store: InventoryStore = Depends(get_store),
) -> TransactionResponse:
    fields = body.model_dump(exclude_unset=True)
    transaction = await inventory_service.edit_transaction(store, transaction_id, fields)
    return transaction_to_response(transaction)


@router.delete("/transactions/{transaction_id}", response_model=VoidResponse)
async def void_transaction(
    transaction_id: str,
    store: InventoryStore = Depends(get_store),
) -> VoidResponse:
    transaction = await inventory_service.void_transaction(store, transaction_id)
    return VoidResponse(transaction=transaction_to_response(transaction))


@router.post("/venue/seed", response_model=SeedResponse)
async def seed_venue(
    store: InventoryStore = Depends(get_store),
    venue: VenueConfig = Depends(get_venue),
) -> SeedResponse:
    created = await inventory_service.seed_venue(store, venue)
    return SeedResponse(seats_created=created)


@router.get("/stream/{collection}")
async def stream_collection(
    collection: Collection,
    store: InventoryStore = Depends(get_store),
) -> EventSourceResponse:
    """Server-sent events: the full snapshot now, then again after every change."""
    return EventSourceResponse(snapshot_events(store, collection))


async def snapshot_events(
    store: InventoryStore, collection: Collection
) -> AsyncIterator[dict[str, str]]:
    """Yield one event per snapshot; subscribes only once the stream starts."""
    subscription = await store.subscribe(collection)
    try:
        async for snapshot in subscription:
            yield {
                "event": collection.value,
                "data": _snapshot_to_json(collection, snapshot),
            }
    finally:
        subscription.cancel()
        logger.info("Stream for %s closed", collection.value)
