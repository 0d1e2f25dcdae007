from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_app_settings, get_db_session, get_lock_redis, get_sms_client, require_cron_secret
from app.core.config import Settings
from app.integrations.africas_talking import AfricasTalkingClient
from app.services.cron_runs import CronRunService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(require_cron_secret)])


def _job_error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})


@router.post("/reminders/dispatch")
async def dispatch_reminders(
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_db_session),
    sms_client: AfricasTalkingClient = Depends(get_sms_client),
    redis: Redis | None = Depends(get_lock_redis),
):
    try:
        summary = await CronRunService(session).run_dispatch(settings, sms_client, redis=redis)
    except Exception as exc:
        logger.exception("Reminder dispatch aborted")
        return _job_error(exc)
    return summary.model_dump()


@router.post("/reminders/trigger")
async def trigger_reminders(session: AsyncSession = Depends(get_db_session)):
    try:
        summary = await CronRunService(session).run_trigger()
    except Exception as exc:
        logger.exception("Reminder trigger aborted")
        return _job_error(exc)
    return summary.model_dump()
