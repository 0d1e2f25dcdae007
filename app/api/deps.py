from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.security import ensure_cron_secret
from app.db.session import get_session
from app.integrations.africas_talking import AfricasTalkingClient
from app.integrations.redis import get_redis


def get_app_settings() -> Settings:
    return get_settings()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


async def get_lock_redis(settings: Settings = Depends(get_app_settings)) -> Redis | None:
    if not settings.dispatch_lock_enabled:
        return None
    return await get_redis()


async def get_sms_client(settings: Settings = Depends(get_app_settings)) -> AsyncGenerator[AfricasTalkingClient, None]:
    async with AfricasTalkingClient.from_settings(settings) as client:
        yield client


async def require_cron_secret(
    x_cron_secret: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    ensure_cron_secret(x_cron_secret, settings.cron_secret)
