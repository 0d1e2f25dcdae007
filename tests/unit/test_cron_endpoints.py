from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from app.api import deps
from app.api.v1.endpoints import cron
from app.core.config import Settings
from app.main import app
from app.schemas.reminder import DispatchSummary, TriggerSummary

SECRET = "s3cret"


class FakeCronRunService:
    calls = []
    error: Exception | None = None

    def __init__(self, session):
        self.session = session

    async def run_dispatch(self, settings, sms_client, redis=None):
        self.calls.append(("dispatch", redis))
        if self.error is not None:
            raise self.error
        return DispatchSummary(processed=3, sent=2, failed=0, retried=1)

    async def run_trigger(self, today=None):
        self.calls.append(("trigger", today))
        if self.error is not None:
            raise self.error
        return TriggerSummary(inserted=6, candidates=4)


@pytest.fixture()
async def cron_client(monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    FakeCronRunService.calls = []
    FakeCronRunService.error = None
    monkeypatch.setattr(cron, "CronRunService", FakeCronRunService)

    async def override_db():
        yield object()

    async def override_sms_client():
        yield object()

    async def override_redis():
        return None

    app.dependency_overrides[deps.get_app_settings] = lambda: Settings(cron_secret=SECRET)
    app.dependency_overrides[deps.get_db_session] = override_db
    app.dependency_overrides[deps.get_sms_client] = override_sms_client
    app.dependency_overrides[deps.get_lock_redis] = override_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_dispatch_requires_cron_secret(cron_client):
    missing = await cron_client.post("/api/v1/cron/reminders/dispatch")
    wrong = await cron_client.post("/api/v1/cron/reminders/dispatch", headers={"X-Cron-Secret": "nope"})

    for response in (missing, wrong):
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"
    assert FakeCronRunService.calls == []


@pytest.mark.asyncio
async def test_unset_secret_rejects_everything(cron_client):
    app.dependency_overrides[deps.get_app_settings] = lambda: Settings(cron_secret="")

    response = await cron_client.post("/api/v1/cron/reminders/trigger", headers={"X-Cron-Secret": ""})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_dispatch_returns_summary(cron_client):
    response = await cron_client.post("/api/v1/cron/reminders/dispatch", headers={"X-Cron-Secret": SECRET})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "processed": 3, "sent": 2, "failed": 0, "retried": 1}
    assert FakeCronRunService.calls == [("dispatch", None)]


@pytest.mark.asyncio
async def test_trigger_returns_inserted_count(cron_client):
    response = await cron_client.post("/api/v1/cron/reminders/trigger", headers={"X-Cron-Secret": SECRET})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "inserted": 6}


@pytest.mark.asyncio
async def test_aborted_run_returns_error_body(cron_client):
    FakeCronRunService.error = RuntimeError("database unavailable")

    response = await cron_client.post("/api/v1/cron/reminders/dispatch", headers={"X-Cron-Secret": SECRET})

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "database unavailable"}
