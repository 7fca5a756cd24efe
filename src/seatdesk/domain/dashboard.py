"""Live dashboard figures computed from collection snapshots."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from seatdesk.domain.models import Seat, SeatStatus, SponsorshipPackage
from seatdesk.domain.venue import VenueConfig


@dataclass
class CategoryStats:
    sold: int = 0
    total: int = 0


@dataclass
class DashboardSummary:
    total_revenue: int = 0
    total_tickets_sold: int = 0
    category_stats: dict[str, CategoryStats] = field(default_factory=dict)


@dataclass(frozen=True)
class PackageAvailability:
    package_id: str
    name: str
    slots_remaining: int
    total_slots: int

    @property
    def is_full(self) -> bool:
        return self.slots_remaining <= 0


def compute_dashboard(seats: Mapping[str, Seat], venue: VenueConfig) -> DashboardSummary:
    """Revenue and per-category sales from a seat snapshot.

    Category totals come from the venue roster, so categories with no seats
    in the snapshot still show up. Only ticketed categories (price above zero)
    get per-category stats. House seats (seeded sold) are not counted as
    tickets sold.
    """
    summary = DashboardSummary()
    untracked = {
        category.name
        for category in venue.categories.values()
        if category.initial_status is SeatStatus.SOLD or category.price == 0
    }
    for name, total in venue.seats_per_category().items():
        if name in untracked:
            continue
        summary.category_stats[name.split("/")[0]] = CategoryStats(total=total)

    for seat in seats.values():
        if seat.status is not SeatStatus.SOLD or seat.holder_id is None:
            continue
        summary.total_tickets_sold += 1
        summary.total_revenue += seat.price
        stats = summary.category_stats.get(seat.category.split("/")[0])
        if stats is not None:
            stats.sold += 1
    return summary


def package_availability(packages: Iterable[SponsorshipPackage]) -> list[PackageAvailability]:
    return [
        PackageAvailability(
            package_id=p.id,
            name=p.name,
            slots_remaining=p.slots_remaining,
            total_slots=p.total_slots,
        )
        for p in packages
    ]
