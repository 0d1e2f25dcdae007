from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import pytest
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.db.base import Base
from app.models import *  # noqa: F401,F403


TEST_DB_URL = os.getenv("TEST_DATABASE_URL")
TEST_REDIS_URL = os.getenv("TEST_REDIS_URL")


@pytest.fixture(scope="session")
def integration_enabled() -> bool:
    return bool(TEST_DB_URL and TEST_REDIS_URL)


@pytest.fixture()
async def engine(integration_enabled: bool):
    if not integration_enabled:
        yield None
        return

    engine = create_async_engine(TEST_DB_URL, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def redis_client(integration_enabled: bool):
    if not integration_enabled:
        yield None
        return

    redis = Redis.from_url(TEST_REDIS_URL, encoding="utf-8", decode_responses=True)
    await redis.flushdb()
    yield redis
    await redis.flushdb()
    await redis.aclose()


@pytest.fixture()
async def db_session(engine, integration_enabled: bool) -> AsyncGenerator[AsyncSession, None]:
    if not integration_enabled:
        pytest.skip("Integration env is not configured")

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session
        await session.rollback()
