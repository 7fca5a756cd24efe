"""Inventory store: atomic write batches and snapshot subscriptions.

A batch is one database transaction. Once it commits, every collection the
batch touched is re-read and pushed to its subscribers before the next batch
may start, so each stream sees commits in order and exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatdesk.domain.errors import ConflictError, InvalidInputError
from seatdesk.domain.models import Collection
from seatdesk.domain.transaction_log import merge_transactions
from seatdesk.infrastructure.change_feed import ChangeFeed, SnapshotHandler, Subscription
from seatdesk.infrastructure.repositories.package_repository import PackageRepository
from seatdesk.infrastructure.repositories.reservation_repository import ReservationRepository
from seatdesk.infrastructure.repositories.sale_repository import SaleRepository
from seatdesk.infrastructure.repositories.seat_repository import SeatRepository

logger = logging.getLogger(__name__)

# Collections derived from others and refreshed when any source changes.
_DERIVED = {
    Collection.TRANSACTIONS: {Collection.SALES, Collection.RESERVATIONS},
}


class WriteBatch:
    """Repositories bound to one open transaction, plus the collections written."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.seats = SeatRepository(session)
        self.sales = SaleRepository(session)
        self.reservations = ReservationRepository(session)
        self.packages = PackageRepository(session)
        self.touched: set[Collection] = set()

    def touch(self, *collections: Collection) -> None:
        self.touched.update(collections)


class InventoryStore:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        feed: Optional[ChangeFeed] = None,
    ) -> None:
        self._session_maker = session_maker
        self._feed = feed or ChangeFeed()
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def batch(self) -> AsyncIterator[WriteBatch]:
        """Open an all-or-nothing write batch.

        Any exception inside the block rolls everything back and propagates.
        """
        async with self._write_lock:
            async with self._session_maker() as session:
                batch = WriteBatch(session)
                try:
                    yield batch
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    logger.warning("Batch rejected by integrity constraint: %s", e.orig)
                    raise ConflictError([], message="Write conflicts with existing records") from e
                except DataError as e:
                    await session.rollback()
                    logger.warning("Batch rejected by the database: %s", e.orig)
                    raise InvalidInputError("Value does not fit the stored record") from e
                except Exception:
                    await session.rollback()
                    raise
            await self._publish(batch.touched)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[WriteBatch]:
        """Read-only access to the repositories outside any batch."""
        async with self._session_maker() as session:
            yield WriteBatch(session)

    async def snapshot(self, collection: Collection) -> Any:
        """Complete current contents of a collection."""
        async with self.read() as r:
            return await self._load(r, collection)

    async def subscribe(
        self,
        collection: Collection,
        handler: Optional[SnapshotHandler] = None,
    ) -> Subscription:
        """Subscribe to a collection; the current snapshot is delivered first.

        Registration happens under the write lock, so no commit can fall
        between the initial snapshot and the first change notification.
        """
        async with self._write_lock:
            snapshot = await self.snapshot(collection)
            subscription = self._feed.add(collection)
            subscription.deliver(snapshot)
        if handler is not None:
            subscription.attach(handler)
        logger.info("New subscription to %s", collection.value)
        return subscription

    def has_subscribers(self, collection: Collection) -> bool:
        return self._feed.has_subscribers(collection)

    async def subscribe_seats(self, handler: Optional[SnapshotHandler] = None) -> Subscription:
        return await self.subscribe(Collection.SEATS, handler)

    async def subscribe_transactions(self, handler: Optional[SnapshotHandler] = None) -> Subscription:
        return await self.subscribe(Collection.TRANSACTIONS, handler)

    async def subscribe_packages(self, handler: Optional[SnapshotHandler] = None) -> Subscription:
        return await self.subscribe(Collection.PACKAGES, handler)

    def close(self) -> None:
        self._feed.close()

    async def _publish(self, touched: set[Collection]) -> None:
        affected = set(touched)
        for derived, sources in _DERIVED.items():
            if affected & sources:
                affected.add(derived)
        for collection in Collection:
            if collection in affected and self._feed.has_subscribers(collection):
                self._feed.publish(collection, await self.snapshot(collection))

    async def _load(self, r: WriteBatch, collection: Collection) -> Any:
        if collection is Collection.SEATS:
            return await r.seats.list_all()
        if collection is Collection.SALES:
            return await r.sales.list_all()
        if collection is Collection.RESERVATIONS:
            return await r.reservations.list_all()
        if collection is Collection.PACKAGES:
            return await r.packages.list_all()
        if collection is Collection.TRANSACTIONS:
            return merge_transactions(await r.sales.list_all(), await r.reservations.list_all())
        raise ValueError(f"Unknown collection: {collection}")
