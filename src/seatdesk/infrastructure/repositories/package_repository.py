from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from seatdesk.domain.models import SponsorshipPackage
from seatdesk.infrastructure.models import PackageRecord


class PackageRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, package_id: str) -> Optional[SponsorshipPackage]:
        record = await self._session.get(PackageRecord, package_id, populate_existing=True)
        return record.to_domain() if record else None

    async def list_all(self) -> list[SponsorshipPackage]:
        result = await self._session.execute(select(PackageRecord).order_by(PackageRecord.id))
        return [r.to_domain() for r in result.scalars().all()]

    async def add_many(self, packages: Sequence[SponsorshipPackage]) -> None:
        self._session.add_all(
            PackageRecord(
                id=p.id,
                package_name=p.name,
                price=p.price,
                total_slots=p.total_slots,
                slots_remaining=p.slots_remaining,
            )
            for p in packages
        )
        await self._session.flush()

    async def take_slot(self, package_id: str) -> int:
        """Decrement slots_remaining if any are left. Returns rows updated (0 or 1)."""
        stmt = (
            update(PackageRecord)
            .where(PackageRecord.id == package_id, PackageRecord.slots_remaining > 0)
            .values(slots_remaining=PackageRecord.slots_remaining - 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def return_slot(self, package_id: str) -> int:
        """Increment slots_remaining unless already at total_slots."""
        stmt = (
            update(PackageRecord)
            .where(
                PackageRecord.id == package_id,
                PackageRecord.slots_remaining < PackageRecord.total_slots,
            )
            .values(slots_remaining=PackageRecord.slots_remaining + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount
