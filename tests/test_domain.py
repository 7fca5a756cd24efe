"""Unit tests for domain values and pure functions.

Run with: pytest tests/test_domain.py -v
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from seatdesk.domain.dashboard import compute_dashboard, package_availability
from seatdesk.domain.errors import ConflictError, ErrorCode, NotFoundError
from seatdesk.domain.models import (
    SaleTransaction,
    Seat,
    SeatStatus,
    SponsorshipPackage,
    SponsorshipReservation,
    TransactionKind,
)
from seatdesk.domain.transaction_log import merge_transactions
from seatdesk.domain.venue import DEFAULT_VENUE, SeatCategory, VenueConfig

T0 = datetime(2025, 3, 1, 9, 0, 0)


def _sale(sale_id: str, at: datetime) -> SaleTransaction:
    return SaleTransaction(
        id=sale_id,
        booth_id="JHS",
        moderator_name="Alice",
        timestamp=at,
        seat_ids=("G1",),
        total_price=600,
    )


def _reservation(reservation_id: str, at: datetime) -> SponsorshipReservation:
    return SponsorshipReservation(
        id=reservation_id,
        sponsor_name="Acme Corp",
        package_id="kapwa",
        package_name="Kapwa",
        donation_amount=10000,
        seat_ids=("V1",),
        timestamp=at,
    )


class TestSponsorshipPackage:
    def test_has_capacity(self):
        assert SponsorshipPackage("kapwa", "Kapwa", 10000, 5, 1).has_capacity
        assert not SponsorshipPackage("kapwa", "Kapwa", 10000, 5, 0).has_capacity

    def test_rejects_negative_remaining(self):
        with pytest.raises(ValueError):
            SponsorshipPackage("kapwa", "Kapwa", 10000, 5, -1)

    def test_rejects_remaining_above_total(self):
        with pytest.raises(ValueError):
            SponsorshipPackage("kapwa", "Kapwa", 10000, 5, 6)


class TestSeat:
    def test_available_seat(self):
        seat = Seat("G5", "Ginto", 600, SeatStatus.AVAILABLE)
        assert seat.is_available
        assert seat.holder_id is None

    def test_sold_seat_holder(self):
        seat = Seat("V1", "VIP/Sponsor", 0, SeatStatus.SOLD, reservation_id="r1")
        assert not seat.is_available
        assert seat.holder_id == "r1"


class TestTransactionKinds:
    def test_kind_tags(self):
        assert _sale("s1", T0).kind is TransactionKind.SALE
        assert _reservation("r1", T0).kind is TransactionKind.SPONSORSHIP

    def test_display_name_and_amount(self):
        assert _sale("s1", T0).display_name == "Alice"
        assert _reservation("r1", T0).amount == 10000


class TestErrors:
    def test_not_found_message(self):
        err = NotFoundError("Seat", ["Z1", "Z2"])
        assert err.code is ErrorCode.NOT_FOUND
        assert err.ids == ["Z1", "Z2"]
        assert str(err) == "NOT_FOUND: Seat not found: Z1, Z2"

    def test_conflict_lists_seats(self):
        err = ConflictError(["G2"])
        assert err.seat_ids == ["G2"]
        assert "G2" in err.message


class TestVenueConfig:
    def test_default_venue_roster(self):
        assert len(DEFAULT_VENUE.seat_ids()) == 700
        assert len(DEFAULT_VENUE.seat_ids("T")) == 280
        assert DEFAULT_VENUE.seat_ids("K")[:2] == ["K1", "K2"]

    def test_default_packages(self):
        kapwa = next(p for p in DEFAULT_VENUE.packages if p.id == "kapwa")
        assert kapwa.total_slots == 5

    def test_category_for(self):
        assert DEFAULT_VENUE.category_for("G5").price == 600
        assert DEFAULT_VENUE.category_for("K1").initial_status is SeatStatus.SOLD

    def test_rejects_unknown_roster_category(self):
        with pytest.raises(ValidationError):
            VenueConfig(
                categories={"G": SeatCategory(name="Ginto", price=600)},
                roster={"X": [1]},
            )

    def test_rejects_duplicate_numbers(self):
        with pytest.raises(ValidationError):
            VenueConfig(
                categories={"G": SeatCategory(name="Ginto", price=600)},
                roster={"G": [1, 1]},
            )

    def test_from_file(self, tmp_path, venue):
        path = tmp_path / "venue.json"
        path.write_text(venue.model_dump_json(), encoding="utf-8")
        assert VenueConfig.from_file(path) == venue


class TestMergeTransactions:
    def test_newest_first_across_sources(self):
        merged = merge_transactions(
            [_sale("s2", T0 + timedelta(minutes=2)), _sale("s1", T0)],
            [_reservation("r1", T0 + timedelta(minutes=1))],
        )
        assert [t.id for t in merged] == ["s2", "r1", "s1"]

    def test_ties_keep_sales_first_and_source_order(self):
        merged = merge_transactions(
            [_sale("s1", T0), _sale("s2", T0)],
            [_reservation("r1", T0)],
        )
        assert [t.id for t in merged] == ["s1", "s2", "r1"]

    def test_empty_sources(self):
        assert merge_transactions([], []) == []

    def test_inputs_not_mutated(self):
        sales = [_sale("s1", T0), _sale("s2", T0 + timedelta(minutes=1))]
        merge_transactions(sales, [])
        assert [s.id for s in sales] == ["s1", "s2"]


class TestDashboard:
    def test_revenue_and_category_stats(self, venue):
        seats = {
            "G1": Seat("G1", "Ginto", 600, SeatStatus.SOLD, sale_id="s1"),
            "G2": Seat("G2", "Ginto", 600, SeatStatus.AVAILABLE),
            "P1": Seat("P1", "Pilak", 500, SeatStatus.SOLD, sale_id="s1"),
            "K1": Seat("K1", "Intermediate/Primary", 0, SeatStatus.SOLD),
        }
        summary = compute_dashboard(seats, venue)
        assert summary.total_revenue == 1100
        assert summary.total_tickets_sold == 2
        assert summary.category_stats["Ginto"].sold == 1
        assert summary.category_stats["Ginto"].total == 10
        assert summary.category_stats["Tanso"].sold == 0
        assert "Intermediate" not in summary.category_stats

    def test_complimentary_categories_have_no_stats(self, venue):
        seats = {"V1": Seat("V1", "VIP/Sponsor", 0, SeatStatus.SOLD, reservation_id="r1")}

        summary = compute_dashboard(seats, venue)

        assert set(summary.category_stats) == {"Ginto", "Pilak", "Tanso"}
        assert summary.total_tickets_sold == 1
        assert summary.total_revenue == 0

    def test_package_availability(self):
        availability = package_availability([SponsorshipPackage("kapwa", "Kapwa", 10000, 5, 0)])
        assert availability[0].is_full
        assert availability[0].total_slots == 5
