from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Optional

from seatdesk.domain.models import Seat


@dataclass(frozen=True)
class SelectionSummary:
    count: int
    total: int
    seat_ids: tuple[str, ...]

    @property
    def label(self) -> str:
        return ", ".join(self.seat_ids) if self.seat_ids else "None"


class SeatsSnapshotCache:
    """Caller-owned copy of the latest seat snapshot.

    Never updated piecemeal: every new snapshot replaces the previous one
    wholesale. Pass the instance itself as a seats subscription handler.
    """

    def __init__(self) -> None:
        self._seats: dict[str, Seat] = {}
        self._version = 0

    def __call__(self, snapshot: Mapping[str, Seat]) -> None:
        self.replace(snapshot)

    @property
    def version(self) -> int:
        """Number of snapshots received so far."""
        return self._version

    def replace(self, snapshot: Mapping[str, Seat]) -> None:
        self._seats = dict(snapshot)
        self._version += 1

    def get(self, seat_id: str) -> Optional[Seat]:
        return self._seats.get(seat_id)

    def is_available(self, seat_id: str) -> bool:
        seat = self._seats.get(seat_id)
        return seat is not None and seat.is_available

    def selection_summary(self, seat_ids: Iterable[str]) -> SelectionSummary:
        """Count and price total of the seats a booth has selected.

        Seats missing from the snapshot are left out.
        """
        selected = [self._seats[s] for s in seat_ids if s in self._seats]
        return SelectionSummary(
            count=len(selected),
            total=sum(s.price for s in selected),
            seat_ids=tuple(s.id for s in selected),
        )
