from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from seatdesk.domain.models import (
    SaleTransaction,
    Seat,
    SeatStatus,
    SponsorshipPackage,
    SponsorshipReservation,
    Transaction,
)


class SeatResponse(BaseModel):
    id: str
    category: str
    price: int
    status: SeatStatus
    sale_id: Optional[str] = None
    reservation_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PackageResponse(BaseModel):
    id: str
    name: str
    price: int
    total_slots: int
    slots_remaining: int

    model_config = ConfigDict(from_attributes=True)


class SaleResponse(BaseModel):
    kind: Literal["sale"] = "sale"
    id: str
    booth_id: str
    moderator_name: str
    timestamp: datetime
    seat_ids: list[str]
    total_price: int


class ReservationResponse(BaseModel):
    kind: Literal["sponsorship"] = "sponsorship"
    id: str
    sponsor_name: str
    package_id: str
    package_name: str
    donation_amount: int
    seat_ids: list[str]
    timestamp: datetime


TransactionResponse = Union[SaleResponse, ReservationResponse]


BoothId = Annotated[str, Field(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")]
PersonName = Annotated[str, Field(min_length=1, max_length=255)]


class SaleCreateRequest(BaseModel):
    booth_id: BoothId
    moderator_name: PersonName
    seat_ids: list[str]
    total_price: int


class ReservationCreateRequest(BaseModel):
    sponsor_name: PersonName
    package_id: str = Field(min_length=1, max_length=50)
    donation_amount: int
    seat_ids: list[str]


class TransactionUpdateRequest(BaseModel):
    """Only the fields present in the request body are applied."""

    booth_id: Optional[BoothId] = None
    moderator_name: Optional[PersonName] = None
    total_price: Optional[int] = None
    sponsor_name: Optional[PersonName] = None
    donation_amount: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class CategoryStatsResponse(BaseModel):
    sold: int
    total: int


class PackageAvailabilityResponse(BaseModel):
    package_id: str
    name: str
    slots_remaining: int
    total_slots: int


class DashboardResponse(BaseModel):
    total_revenue: int
    total_tickets_sold: int
    category_stats: dict[str, CategoryStatsResponse]
    packages: list[PackageAvailabilityResponse] = Field(default_factory=list)


class SeedResponse(BaseModel):
    seats_created: int


class VoidResponse(BaseModel):
    success: bool = True
    transaction: TransactionResponse


def seat_to_response(seat: Seat) -> SeatResponse:
    return SeatResponse.model_validate(seat)


def package_to_response(package: SponsorshipPackage) -> PackageResponse:
    return PackageResponse.model_validate(package)


def transaction_to_response(transaction: Transaction) -> TransactionResponse:
    if isinstance(transaction, SaleTransaction):
        return SaleResponse(
            id=transaction.id,
            booth_id=transaction.booth_id,
            moderator_name=transaction.moderator_name,
            timestamp=transaction.timestamp,
            seat_ids=list(transaction.seat_ids),
            total_price=transaction.total_price,
        )
    if isinstance(transaction, SponsorshipReservation):
        return ReservationResponse(
            id=transaction.id,
            sponsor_name=transaction.sponsor_name,
            package_id=transaction.package_id,
            package_name=transaction.package_name,
            donation_amount=transaction.donation_amount,
            seat_ids=list(transaction.seat_ids),
            timestamp=transaction.timestamp,
        )
    raise TypeError(f"Unsupported transaction type: {type(transaction).__name__}")
