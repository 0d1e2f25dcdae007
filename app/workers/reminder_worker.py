"""Polling alternative to the HTTP cron endpoints.

Run with ``python -m app.workers.reminder_worker``. Dispatches due reminders
every ``worker_poll_interval_sec`` and enqueues the day's staged reminders
once per UTC day, after 00:20.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timezone

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal, dispose_engine
from app.integrations.africas_talking import AfricasTalkingClient
from app.integrations.redis import close_redis, get_redis
from app.services.cron_runs import CronRunService

logger = logging.getLogger(__name__)

TRIGGER_NOT_BEFORE = time(0, 20, tzinfo=timezone.utc)


def trigger_due(now: datetime, last_trigger_day: date | None) -> bool:
    if last_trigger_day == now.date():
        return False
    return now.timetz() >= TRIGGER_NOT_BEFORE


async def dispatch_once(settings: Settings, sms_client: AfricasTalkingClient) -> None:
    redis = await get_redis() if settings.dispatch_lock_enabled else None
    async with SessionLocal() as session:
        summary = await CronRunService(session).run_dispatch(settings, sms_client, redis=redis)
    if summary.processed:
        logger.info("Dispatched %s reminders", summary.processed)


async def trigger_once(today: date) -> None:
    async with SessionLocal() as session:
        summary = await CronRunService(session).run_trigger(today)
    logger.info("Enqueued %s reminders for %s", summary.inserted, today.isoformat())


async def worker_loop() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.africas_talking_api_key or not settings.africas_talking_username:
        logger.warning("Africa's Talking is not configured; SMS reminders will fail")

    logger.info("Reminder worker started")
    last_trigger_day: date | None = None
    try:
        async with AfricasTalkingClient.from_settings(settings) as sms_client:
            while True:
                now = datetime.now(timezone.utc)
                try:
                    if trigger_due(now, last_trigger_day):
                        await trigger_once(now.date())
                        last_trigger_day = now.date()
                    await dispatch_once(settings, sms_client)
                except Exception:
                    logger.exception("Worker iteration failed")
                await asyncio.sleep(settings.worker_poll_interval_sec)
    finally:
        await close_redis()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(worker_loop())
