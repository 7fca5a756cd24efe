"""Domain models for the seat inventory.

These are plain immutable values. ORM records live in
seatdesk/infrastructure/models.py and convert into these types.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class SeatStatus(str, Enum):
    AVAILABLE = "available"
    SOLD = "sold"


class TransactionKind(str, Enum):
    SALE = "sale"
    SPONSORSHIP = "sponsorship"


class Collection(str, Enum):
    """Collections a subscriber can listen to."""

    SEATS = "seats"
    SALES = "sales"
    RESERVATIONS = "reservations"
    PACKAGES = "packages"
    TRANSACTIONS = "transactions"


@dataclass(frozen=True)
class Seat:
    """A single sellable unit, identified by category code and number (e.g. G5)."""

    id: str
    category: str
    price: int
    status: SeatStatus
    sale_id: Optional[str] = None
    reservation_id: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status is SeatStatus.AVAILABLE

    @property
    def holder_id(self) -> Optional[str]:
        """Id of the sale or reservation that sold this seat, if any."""
        return self.sale_id or self.reservation_id


@dataclass(frozen=True)
class SponsorshipPackage:
    id: str
    name: str
    price: int
    total_slots: int
    slots_remaining: int

    def __post_init__(self) -> None:
        if not 0 <= self.slots_remaining <= self.total_slots:
            raise ValueError(
                f"slots_remaining must be within 0..{self.total_slots}, got {self.slots_remaining}"
            )

    @property
    def has_capacity(self) -> bool:
        return self.slots_remaining > 0


@dataclass(frozen=True)
class SaleTransaction:
    """Seats sold over the counter by a booth moderator."""

    id: str
    booth_id: str
    moderator_name: str
    timestamp: datetime
    seat_ids: tuple[str, ...]
    total_price: int

    kind = TransactionKind.SALE

    @property
    def display_name(self) -> str:
        return self.moderator_name

    @property
    def amount(self) -> int:
        return self.total_price


@dataclass(frozen=True)
class SponsorshipReservation:
    """A sponsor's claim on one slot of a package, with its assigned seats."""

    id: str
    sponsor_name: str
    package_id: str
    package_name: str
    donation_amount: int
    seat_ids: tuple[str, ...]
    timestamp: datetime

    kind = TransactionKind.SPONSORSHIP

    @property
    def display_name(self) -> str:
        return self.sponsor_name

    @property
    def amount(self) -> int:
        return self.donation_amount


Transaction = Union[SaleTransaction, SponsorshipReservation]

# Fields editable after creation, per transaction kind. The seat set never is.
EDITABLE_FIELDS: dict[TransactionKind, frozenset[str]] = {
    TransactionKind.SALE: frozenset({"booth_id", "moderator_name", "total_price"}),
    TransactionKind.SPONSORSHIP: frozenset({"sponsor_name", "donation_amount"}),
}
