from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from seatdesk.domain.models import (
    Seat,
    SeatStatus,
    SaleTransaction,
    SponsorshipPackage,
    SponsorshipReservation,
)
from seatdesk.infrastructure.database import Base


class SeatRecord(Base):
    __tablename__ = "seats"

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    sale_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    reservation_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    def to_domain(self) -> Seat:
        return Seat(
            id=self.id,
            category=self.category,
            price=self.price,
            status=SeatStatus(self.status),
            sale_id=self.sale_id,
            reservation_id=self.reservation_id,
        )


class SaleRecord(Base):
    __tablename__ = "sales"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    booth_id: Mapped[str] = mapped_column(String(50), nullable=False)
    moderator_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sale_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    seats: Mapped[list[str]] = mapped_column(JSON, nullable=False)  # in the order they were sold
    total_price: Mapped[int] = mapped_column(Integer, nullable=False)

    def to_domain(self) -> SaleTransaction:
        return SaleTransaction(
            id=self.id,
            booth_id=self.booth_id,
            moderator_name=self.moderator_name,
            timestamp=self.sale_timestamp,
            seat_ids=tuple(self.seats),
            total_price=self.total_price,
        )


class ReservationRecord(Base):
    __tablename__ = "sponsorship_reservations"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    sponsor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    package_id: Mapped[str] = mapped_column(String(50), nullable=False)
    package_name: Mapped[str] = mapped_column(String(255), nullable=False)
    donation_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    assigned_seats: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    reservation_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_domain(self) -> SponsorshipReservation:
        return SponsorshipReservation(
            id=self.id,
            sponsor_name=self.sponsor_name,
            package_id=self.package_id,
            package_name=self.package_name,
            donation_amount=self.donation_amount,
            seat_ids=tuple(self.assigned_seats),
            timestamp=self.reservation_timestamp,
        )


class PackageRecord(Base):
    __tablename__ = "sponsorships"
    __table_args__ = (
        CheckConstraint(
            "slots_remaining >= 0 AND slots_remaining <= total_slots",
            name="ck_sponsorships_slots_in_range",
        ),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    package_name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    total_slots: Mapped[int] = mapped_column(Integer, nullable=False)
    slots_remaining: Mapped[int] = mapped_column(Integer, nullable=False)

    def to_domain(self) -> SponsorshipPackage:
        return SponsorshipPackage(
            id=self.id,
            name=self.package_name,
            price=self.price,
            total_slots=self.total_slots,
            slots_remaining=self.slots_remaining,
        )
