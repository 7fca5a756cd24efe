from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from seatdesk.domain.models import SaleTransaction
from seatdesk.infrastructure.models import SaleRecord


class SaleRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        sale_id: str,
        booth_id: str,
        moderator_name: str,
        sale_timestamp: datetime,
        seat_ids: Sequence[str],
        total_price: int,
    ) -> SaleTransaction:
        """Create sale record."""
        record = SaleRecord(
            id=sale_id,
            booth_id=booth_id,
            moderator_name=moderator_name,
            sale_timestamp=sale_timestamp,
            seats=list(seat_ids),
            total_price=total_price,
        )
        self._session.add(record)
        await self._session.flush()
        return record.to_domain()

    async def get(self, sale_id: str) -> Optional[SaleTransaction]:
        record = await self._session.get(SaleRecord, sale_id, populate_existing=True)
        return record.to_domain() if record else None

    async def list_all(self) -> list[SaleTransaction]:
        """All sales, newest first."""
        stmt = select(SaleRecord).order_by(SaleRecord.sale_timestamp.desc())
        result = await self._session.execute(stmt)
        return [r.to_domain() for r in result.scalars().all()]

    async def update_fields(self, sale_id: str, values: dict[str, Any]) -> int:
        stmt = (
            update(SaleRecord)
            .where(SaleRecord.id == sale_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def delete(self, sale_id: str) -> int:
        stmt = delete(SaleRecord).where(SaleRecord.id == sale_id)
        result = await self._session.execute(stmt)
        return result.rowcount
