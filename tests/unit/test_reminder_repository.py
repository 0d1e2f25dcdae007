from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql

from app.core.enums import DeliveryStatus
from app.repositories.reminder import ReminderRepository

NOW = datetime(2025, 2, 1, 0, 35, tzinfo=timezone.utc)


class CapturingSession:
    def __init__(self):
        self.statements = []

    async def scalars(self, stmt):
        self.statements.append(stmt)
        return self

    def all(self):
        return []


@pytest.mark.asyncio
async def test_due_for_delivery_selects_oldest_pending_up_to_batch():
    session = CapturingSession()

    rows = await ReminderRepository(session).due_for_delivery(NOW, batch_size=200)  # type: ignore[arg-type]

    assert rows == []
    compiled = session.statements[0].compile(dialect=postgresql.dialect())
    sql = " ".join(str(compiled).split())
    assert "FROM reminders" in sql
    assert "WHERE reminders.delivery_status = %(delivery_status_1)s" in sql
    assert "AND reminders.scheduled_for <= %(scheduled_for_1)s" in sql
    assert "ORDER BY reminders.scheduled_for ASC" in sql
    assert "LIMIT %(param_1)s" in sql
    assert compiled.params["delivery_status_1"] == DeliveryStatus.PENDING
    assert compiled.params["scheduled_for_1"] == NOW
    assert compiled.params["param_1"] == 200
