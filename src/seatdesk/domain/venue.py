"""Static venue configuration: seat categories, seat roster and sponsorship packages.

The configuration is reference data supplied at startup. It is read only by
the seeder and the dashboard; the store stays the source of truth for status.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from seatdesk.domain.models import SeatStatus


class SeatCategory(BaseModel):
    name: str
    price: int = Field(ge=0)
    initial_status: SeatStatus = SeatStatus.AVAILABLE


class PackageDefinition(BaseModel):
    id: str
    name: str
    price: int = Field(ge=0)
    total_slots: int = Field(ge=0)


class VenueConfig(BaseModel):
    categories: dict[str, SeatCategory]
    roster: dict[str, list[int]]
    packages: list[PackageDefinition] = []

    @model_validator(mode="after")
    def check_roster_categories(self) -> "VenueConfig":
        unknown = set(self.roster) - set(self.categories)
        if unknown:
            raise ValueError(f"Roster references unknown categories: {sorted(unknown)}")
        for code, numbers in self.roster.items():
            if len(set(numbers)) != len(numbers):
                raise ValueError(f"Duplicate seat numbers in category {code}")
        return self

    def seat_ids(self, code: Optional[str] = None) -> list[str]:
        """All valid seat ids, optionally restricted to one category code."""
        codes = [code] if code else list(self.roster)
        return [f"{c}{n}" for c in codes for n in self.roster.get(c, [])]

    def category_for(self, seat_id: str) -> SeatCategory:
        return self.categories[seat_id[:1]]

    def seats_per_category(self) -> dict[str, int]:
        """Number of seats keyed by category name."""
        return {self.categories[code].name: len(numbers) for code, numbers in self.roster.items()}

    @classmethod
    def from_file(cls, path: str | Path) -> "VenueConfig":
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


DEFAULT_VENUE = VenueConfig(
    categories={
        "V": SeatCategory(name="VIP/Sponsor", price=0),
        "G": SeatCategory(name="Ginto", price=600),
        "P": SeatCategory(name="Pilak", price=500),
        "T": SeatCategory(name="Tanso", price=400),
        "K": SeatCategory(name="Intermediate/Primary", price=0, initial_status=SeatStatus.SOLD),
    },
    roster={
        "V": list(range(1, 101)),
        "G": list(range(1, 141)),
        "P": list(range(1, 141)),
        "T": list(range(1, 281)),
        "K": list(range(1, 41)),
    },
    packages=[
        PackageDefinition(id="paglingap", name="Paglingap", price=50000, total_slots=2),
        PackageDefinition(id="makatao", name="Makatao", price=25000, total_slots=3),
        PackageDefinition(id="kapwa", name="Kapwa", price=10000, total_slots=5),
    ],
)


def load_venue(path: Optional[str]) -> VenueConfig:
    if path:
        return VenueConfig.from_file(path)
    return DEFAULT_VENUE
