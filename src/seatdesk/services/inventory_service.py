"""Seat sale and sponsorship operations.

Each operation runs inside one store batch. Seats and package slots are
claimed with conditional updates, so a seat sold by a concurrent batch shows
up as a short row count at commit time rather than through a pre-check.
"""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Optional

from seatdesk.domain.errors import (
    CapacityExceededError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from seatdesk.domain.models import (
    EDITABLE_FIELDS,
    Collection,
    SaleTransaction,
    Seat,
    SponsorshipPackage,
    SponsorshipReservation,
    Transaction,
)
from seatdesk.domain.venue import VenueConfig
from seatdesk.infrastructure.store import InventoryStore, WriteBatch

logger = logging.getLogger(__name__)

_NAME_FIELDS = frozenset({"booth_id", "moderator_name", "sponsor_name"})
_AMOUNT_FIELDS = frozenset({"total_price", "donation_amount"})

# Column widths of the stored records.
MAX_LENGTHS = {
    "booth_id": 50,
    "moderator_name": 255,
    "sponsor_name": 255,
    "package_id": 50,
}

# Booth ids become part of the sale id, which travels in URL paths.
BOOTH_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

# Amounts are stored in 32-bit integer columns.
MAX_AMOUNT = 2**31 - 1


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field} is required")
    value = value.strip()
    max_length = MAX_LENGTHS.get(field)
    if max_length is not None and len(value) > max_length:
        raise InvalidInputError(f"{field} must be at most {max_length} characters")
    if field == "booth_id" and not BOOTH_ID_PATTERN.fullmatch(value):
        raise InvalidInputError("booth_id may only contain letters, digits, '-' and '_'")
    return value


def _require_amount(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{field} must be an integer")
    if value < 0:
        raise InvalidInputError(f"{field} cannot be negative")
    if value > MAX_AMOUNT:
        raise InvalidInputError(f"{field} must be at most {MAX_AMOUNT}")
    return value


def _require_seat_ids(seat_ids: Sequence[str]) -> list[str]:
    seat_ids = list(seat_ids)
    if not seat_ids:
        raise InvalidInputError("At least one seat is required")
    if any(not isinstance(s, str) or not s for s in seat_ids):
        raise InvalidInputError("Seat ids must be non-empty strings")
    if len(set(seat_ids)) != len(seat_ids):
        raise InvalidInputError("Seat ids must not repeat")
    return seat_ids


def _new_sale_id(booth_id: str, timestamp: datetime) -> str:
    # e.g. "1678886400000-JHS-9f2c41aa"
    return f"{int(timestamp.timestamp() * 1000)}-{booth_id}-{secrets.token_hex(4)}"


async def _claim_seats(
    batch: WriteBatch,
    seat_ids: list[str],
    sale_id: Optional[str] = None,
    reservation_id: Optional[str] = None,
) -> None:
    claimed = await batch.seats.claim(seat_ids, sale_id=sale_id, reservation_id=reservation_id)
    if claimed == len(seat_ids):
        return

    existing = await batch.seats.existing_ids(seat_ids)
    missing = [s for s in seat_ids if s not in existing]
    if missing:
        raise NotFoundError("Seat", missing)

    holder = sale_id or reservation_id
    taken = []
    for seat_id in seat_ids:
        seat = await batch.seats.get(seat_id)
        if seat is None or seat.holder_id != holder:
            taken.append(seat_id)
    logger.warning("Seats already sold, rejecting %s: %s", holder, taken)
    raise ConflictError(taken)


async def _find_transaction(batch: WriteBatch, transaction_id: str) -> Transaction:
    sale = await batch.sales.get(transaction_id)
    if sale is not None:
        return sale
    reservation = await batch.reservations.get(transaction_id)
    if reservation is not None:
        return reservation
    raise NotFoundError("Transaction", transaction_id)


async def confirm_sale(
    store: InventoryStore,
    booth_id: str,
    moderator_name: str,
    seat_ids: Sequence[str],
    total_price: int,
) -> SaleTransaction:
    """Create a sale and mark its seats sold, all in one batch.

    Raises:
        InvalidInputError: If seat_ids is empty or any field is malformed.
        NotFoundError: If a seat id is not part of the venue.
        ConflictError: If any seat is already sold at commit time.
    """
    booth_id = _require_text(booth_id, "booth_id")
    moderator_name = _require_text(moderator_name, "moderator_name")
    seats = _require_seat_ids(seat_ids)
    total_price = _require_amount(total_price, "total_price")

    sale_timestamp = datetime.now(timezone.utc)
    sale_id = _new_sale_id(booth_id, sale_timestamp)

    async with store.batch() as batch:
        await _claim_seats(batch, seats, sale_id=sale_id)
        sale = await batch.sales.create(
            sale_id=sale_id,
            booth_id=booth_id,
            moderator_name=moderator_name,
            sale_timestamp=sale_timestamp,
            seat_ids=seats,
            total_price=total_price,
        )
        batch.touch(Collection.SEATS, Collection.SALES)

    logger.info("Created sale %s for seats %s", sale.id, ", ".join(sale.seat_ids))
    return sale


async def reserve_package(
    store: InventoryStore,
    sponsor_name: str,
    package_id: str,
    donation_amount: int,
    seat_ids: Sequence[str],
) -> SponsorshipReservation:
    """Reserve one slot of a sponsorship package and assign its seats.

    Raises:
        InvalidInputError: If a field is missing or malformed.
        NotFoundError: If the package or a seat does not exist.
        CapacityExceededError: If the package has no slots remaining.
        ConflictError: If any seat is already sold at commit time.
    """
    sponsor_name = _require_text(sponsor_name, "sponsor_name")
    package_id = _require_text(package_id, "package_id")
    donation_amount = _require_amount(donation_amount, "donation_amount")
    seats = _require_seat_ids(seat_ids)

    reservation_id = uuid.uuid4().hex
    async with store.batch() as batch:
        package = await batch.packages.get(package_id)
        if package is None:
            raise NotFoundError("Sponsorship package", package_id)
        if await batch.packages.take_slot(package_id) != 1:
            raise CapacityExceededError(package_id)
        await _claim_seats(batch, seats, reservation_id=reservation_id)
        reservation = await batch.reservations.create(
            reservation_id=reservation_id,
            sponsor_name=sponsor_name,
            package_id=package.id,
            package_name=package.name,
            donation_amount=donation_amount,
            seat_ids=seats,
            reservation_timestamp=datetime.now(timezone.utc),
        )
        batch.touch(Collection.SEATS, Collection.RESERVATIONS, Collection.PACKAGES)

    logger.info("Created reservation %s on package %s", reservation.id, package_id)
    return reservation


async def void_transaction(store: InventoryStore, transaction_id: str) -> Transaction:
    """Delete a sale or reservation and release everything it held.

    Raises:
        NotFoundError: If no sale or reservation has this id, including
            when it was already voided.
    """
    async with store.batch() as batch:
        transaction = await _find_transaction(batch, transaction_id)

        if isinstance(transaction, SaleTransaction):
            if await batch.sales.delete(transaction.id) != 1:
                raise NotFoundError("Transaction", transaction_id)
            await batch.seats.release_sale(transaction.id)
            batch.touch(Collection.SEATS, Collection.SALES)
        elif isinstance(transaction, SponsorshipReservation):
            if await batch.reservations.delete(transaction.id) != 1:
                raise NotFoundError("Transaction", transaction_id)
            await batch.seats.release_reservation(transaction.id)
            if await batch.packages.return_slot(transaction.package_id) != 1:
                raise ConflictError(
                    [], message=f"Package {transaction.package_id} has no reserved slot to return"
                )
            batch.touch(Collection.SEATS, Collection.RESERVATIONS, Collection.PACKAGES)
        else:
            raise TypeError(f"Unsupported transaction type: {type(transaction).__name__}")

    logger.info("Voided %s transaction %s", transaction.kind.value, transaction_id)
    return transaction


async def edit_transaction(
    store: InventoryStore,
    transaction_id: str,
    fields: Mapping[str, Any],
) -> Transaction:
    """Update the display name or amount of a transaction. Seats never change.

    Raises:
        InvalidInputError: If no fields are given, or a field is not editable
            for this kind of transaction.
        NotFoundError: If the transaction does not exist at commit time.
    """
    if not fields:
        raise InvalidInputError("No fields to update")

    async with store.batch() as batch:
        transaction = await _find_transaction(batch, transaction_id)
        not_editable = sorted(set(fields) - EDITABLE_FIELDS[transaction.kind])
        if not_editable:
            raise InvalidInputError(
                f"Cannot edit {', '.join(not_editable)} on a {transaction.kind.value} transaction"
            )

        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name in _NAME_FIELDS:
                values[name] = _require_text(value, name)
            elif name in _AMOUNT_FIELDS:
                values[name] = _require_amount(value, name)

        if isinstance(transaction, SaleTransaction):
            updated = await batch.sales.update_fields(transaction.id, values)
            batch.touch(Collection.SALES)
            fetch = batch.sales.get
        elif isinstance(transaction, SponsorshipReservation):
            updated = await batch.reservations.update_fields(transaction.id, values)
            batch.touch(Collection.RESERVATIONS)
            fetch = batch.reservations.get
        else:
            raise TypeError(f"Unsupported transaction type: {type(transaction).__name__}")

        if updated != 1:
            raise NotFoundError("Transaction", transaction_id)
        result = await fetch(transaction.id)
        if result is None:
            raise NotFoundError("Transaction", transaction_id)

    logger.info("Edited transaction %s: %s", transaction_id, ", ".join(sorted(values)))
    return result


async def seed_venue(store: InventoryStore, venue: VenueConfig) -> int:
    """Create every seat and sponsorship package from the venue configuration.

    Does nothing when seats already exist. Returns the number of seats created.
    """
    async with store.batch() as batch:
        if await batch.seats.has_any():
            logger.info("Venue already seeded, skipping")
            return 0
        seats = [
            Seat(
                id=seat_id,
                category=venue.category_for(seat_id).name,
                price=venue.category_for(seat_id).price,
                status=venue.category_for(seat_id).initial_status,
            )
            for seat_id in venue.seat_ids()
        ]
        await batch.seats.add_many(seats)
        await batch.packages.add_many(
            [
                SponsorshipPackage(
                    id=p.id,
                    name=p.name,
                    price=p.price,
                    total_slots=p.total_slots,
                    slots_remaining=p.total_slots,
                )
                for p in venue.packages
            ]
        )
        batch.touch(Collection.SEATS, Collection.PACKAGES)

    logger.info("Seeded venue with %d seats and %d packages", len(seats), len(venue.packages))
    return len(seats)
