from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timezone

from redis.asyncio import Redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.repositories.communication import CronRunRepository
from app.repositories.dispatch import SqlDispatchStore, SqlTriggerStore
from app.schemas.reminder import DispatchSummary, TriggerSummary
from app.services.dispatcher import DispatcherConfig, ReminderDispatcher, SmsSender
from app.services.reminder_trigger import ReminderTrigger

logger = logging.getLogger(__name__)

DISPATCH_FUNCTION = "reminders-dispatch"
TRIGGER_FUNCTION = "reminders-trigger"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CronRunService:
    """Keeps one ``cron_runs`` row per scheduled job invocation."""

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self.runs = CronRunRepository(session)
        self.clock = clock

    async def run_dispatch(
        self,
        settings: Settings,
        sms_client: SmsSender,
        redis: Redis | None = None,
    ) -> DispatchSummary:
        run = await self.runs.start(DISPATCH_FUNCTION, self.clock())
        run_id = run.id
        await self.session.commit()

        dispatcher = ReminderDispatcher(
            SqlDispatchStore(self.session),
            sms_client,
            config=DispatcherConfig.from_settings(settings),
            redis=redis,
            clock=self.clock,
        )
        try:
            summary = await dispatcher.run()
        except Exception as exc:
            await self._finish_failed(run_id, exc)
            raise

        await self._finish(
            run_id,
            ok=True,
            attempted_count=summary.processed,
            meta=summary.model_dump(exclude={"ok"}),
        )
        return summary

    async def run_trigger(self, today: date | None = None) -> TriggerSummary:
        today = today or self.clock().date()
        run = await self.runs.start(TRIGGER_FUNCTION, self.clock())
        run_id = run.id
        await self.session.commit()

        try:
            summary = await ReminderTrigger(SqlTriggerStore(self.session)).run(today)
        except Exception as exc:
            await self._finish_failed(run_id, exc)
            raise

        await self._finish(
            run_id,
            ok=True,
            attempted_count=summary.candidates,
            inserted_count=summary.inserted,
            meta={"day": today.isoformat()},
        )
        return summary

    async def _finish(self, run_id, **values) -> None:
        await self.runs.finish(run_id, {"finished_at": self.clock(), **values})
        await self.session.commit()

    async def _finish_failed(self, run_id, exc: Exception) -> None:
        await self.session.rollback()
        try:
            await self._finish(run_id, ok=False, error=str(exc))
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("Could not record failed cron run %s", run_id)
