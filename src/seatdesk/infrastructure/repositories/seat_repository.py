from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from seatdesk.domain.models import Seat, SeatStatus
from seatdesk.infrastructure.models import SeatRecord


class SeatRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, seat_id: str) -> Optional[Seat]:
        record = await self._session.get(SeatRecord, seat_id, populate_existing=True)
        return record.to_domain() if record else None

    async def list_all(self) -> dict[str, Seat]:
        """All seats keyed by id."""
        result = await self._session.execute(select(SeatRecord).order_by(SeatRecord.id))
        return {r.id: r.to_domain() for r in result.scalars().all()}

    async def has_any(self) -> bool:
        result = await self._session.execute(select(SeatRecord.id).limit(1))
        return result.first() is not None

    async def add_many(self, seats: Sequence[Seat]) -> None:
        """Insert seats at venue setup."""
        self._session.add_all(
            SeatRecord(
                id=s.id,
                category=s.category,
                price=s.price,
                status=s.status.value,
                sale_id=s.sale_id,
                reservation_id=s.reservation_id,
            )
            for s in seats
        )
        await self._session.flush()

    async def existing_ids(self, seat_ids: Sequence[str]) -> set[str]:
        stmt = select(SeatRecord.id).where(SeatRecord.id.in_(seat_ids))
        result = await self._session.execute(stmt)
        return set(result.scalars().all())

    async def claim(
        self,
        seat_ids: Sequence[str],
        sale_id: Optional[str] = None,
        reservation_id: Optional[str] = None,
    ) -> int:
        """Mark available seats sold and link them to their holder.

        Only rows still available are touched, so the returned row count is
        below len(seat_ids) when any seat was taken or does not exist.
        """
        stmt = (
            update(SeatRecord)
            .where(
                SeatRecord.id.in_(seat_ids),
                SeatRecord.status == SeatStatus.AVAILABLE.value,
            )
            .values(
                status=SeatStatus.SOLD.value,
                sale_id=sale_id,
                reservation_id=reservation_id,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def release_sale(self, sale_id: str) -> int:
        """Return seats held by a sale to available."""
        stmt = (
            update(SeatRecord)
            .where(SeatRecord.sale_id == sale_id)
            .values(status=SeatStatus.AVAILABLE.value, sale_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def release_reservation(self, reservation_id: str) -> int:
        """Return seats held by a reservation to available."""
        stmt = (
            update(SeatRecord)
            .where(SeatRecord.reservation_id == reservation_id)
            .values(status=SeatStatus.AVAILABLE.value, reservation_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount
