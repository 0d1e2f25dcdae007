from __future__ import annotations

from collections.abc import Collection
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ApartmentUnit, Lease


class LeaseRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def by_ids(self, lease_ids: Collection[UUID]) -> Sequence[Lease]:
        if not lease_ids:
            return []
        result = await self.session.scalars(select(Lease).where(Lease.id.in_(list(lease_ids))))
        return result.all()


class ApartmentUnitRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def by_ids(self, unit_ids: Collection[UUID]) -> Sequence[ApartmentUnit]:
        if not unit_ids:
            return []
        result = await self.session.scalars(select(ApartmentUnit).where(ApartmentUnit.id.in_(list(unit_ids))))
        return result.all()
