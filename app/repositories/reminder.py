from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import DeliveryStatus
from app.models import Reminder

REMINDER_UNIQUE_CONSTRAINT = "uq_reminders_entity_stage_channel_slot"


class ReminderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def due_for_delivery(self, now_dt: datetime, batch_size: int = 200) -> Sequence[Reminder]:
        stmt = (
            select(Reminder)
            .where(
                Reminder.delivery_status == DeliveryStatus.PENDING,
                Reminder.scheduled_for <= now_dt,
            )
            .order_by(Reminder.scheduled_for.asc())
            .limit(batch_size)
        )
        result = await self.session.scalars(stmt)
        return result.all()

    async def update_fields(self, reminder_id: UUID, values: dict[str, Any]) -> None:
        await self.session.execute(update(Reminder).where(Reminder.id == reminder_id).values(**values))

    async def insert_ignoring_duplicates(self, rows: Iterable[dict[str, Any]]) -> list[UUID]:
        rows = list(rows)
        if not rows:
            return []
        stmt = (
            insert(Reminder)
            .values(rows)
            .on_conflict_do_nothing(constraint=REMINDER_UNIQUE_CONSTRAINT)
            .returning(Reminder.id)
        )
        result = await self.session.scalars(stmt)
        return list(result.all())
