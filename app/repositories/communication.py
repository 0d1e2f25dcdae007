from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Communication, CronRun


class CommunicationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, values: dict[str, Any]) -> Communication:
        communication = Communication(**values)
        self.session.add(communication)
        await self.session.flush()
        return communication


class CronRunRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def start(self, function_name: str, started_at: datetime) -> CronRun:
        run = CronRun(function_name=function_name, started_at=started_at)
        self.session.add(run)
        await self.session.flush()
        return run

    async def finish(self, run_id: UUID, values: dict[str, Any]) -> None:
        await self.session.execute(update(CronRun).where(CronRun.id == run_id).values(**values))
