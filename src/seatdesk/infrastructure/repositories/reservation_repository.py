from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from seatdesk.domain.models import SponsorshipReservation
from seatdesk.infrastructure.models import ReservationRecord


class ReservationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        reservation_id: str,
        sponsor_name: str,
        package_id: str,
        package_name: str,
        donation_amount: int,
        seat_ids: Sequence[str],
        reservation_timestamp: datetime,
    ) -> SponsorshipReservation:
        """Create reservation record."""
        record = ReservationRecord(
            id=reservation_id,
            sponsor_name=sponsor_name,
            package_id=package_id,
            package_name=package_name,
            donation_amount=donation_amount,
            assigned_seats=list(seat_ids),
            reservation_timestamp=reservation_timestamp,
        )
        self._session.add(record)
        await self._session.flush()
        return record.to_domain()

    async def get(self, reservation_id: str) -> Optional[SponsorshipReservation]:
        record = await self._session.get(ReservationRecord, reservation_id, populate_existing=True)
        return record.to_domain() if record else None

    async def list_all(self) -> list[SponsorshipReservation]:
        """All reservations, newest first."""
        stmt = select(ReservationRecord).order_by(ReservationRecord.reservation_timestamp.desc())
        result = await self._session.execute(stmt)
        return [r.to_domain() for r in result.scalars().all()]

    async def update_fields(self, reservation_id: str, values: dict[str, Any]) -> int:
        stmt = (
            update(ReservationRecord)
            .where(ReservationRecord.id == reservation_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def delete(self, reservation_id: str) -> int:
        stmt = delete(ReservationRecord).where(ReservationRecord.id == reservation_id)
        result = await self._session.execute(stmt)
        return result.rowcount
