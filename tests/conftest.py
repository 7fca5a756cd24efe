"""Pytest configuration and shared fixtures."""

import pytest
import pytest_asyncio

from seatdesk.domain.models import SeatStatus
from seatdesk.domain.venue import PackageDefinition, SeatCategory, VenueConfig
from seatdesk.infrastructure.database import create_engine, create_session_maker, create_tables
from seatdesk.infrastructure.store import InventoryStore
from seatdesk.services.inventory_service import seed_venue


@pytest.fixture
def venue() -> VenueConfig:
    return VenueConfig(
        categories={
            "V": SeatCategory(name="VIP/Sponsor", price=0),
            "G": SeatCategory(name="Ginto", price=600),
            "P": SeatCategory(name="Pilak", price=500),
            "T": SeatCategory(name="Tanso", price=400),
            "K": SeatCategory(name="Intermediate/Primary", price=0, initial_status=SeatStatus.SOLD),
        },
        roster={
            "V": list(range(1, 11)),
            "G": list(range(1, 11)),
            "P": list(range(1, 6)),
            "T": list(range(1, 6)),
            "K": [1, 2],
        },
        packages=[
            PackageDefinition(id="kapwa", name="Kapwa", price=10000, total_slots=5),
            PackageDefinition(id="paglingap", name="Paglingap", price=50000, total_slots=1),
        ],
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'seatdesk.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def empty_store(engine):
    store = InventoryStore(create_session_maker(engine))
    yield store
    store.close()


@pytest_asyncio.fixture
async def store(empty_store, venue):
    await seed_venue(empty_store, venue)
    return empty_store
