from datetime import date, datetime, timezone

from app.core.security import cron_secret_matches
from app.workers.reminder_worker import trigger_due


def test_trigger_runs_once_per_day_after_cutoff():
    assert not trigger_due(datetime(2025, 3, 1, 0, 10, tzinfo=timezone.utc), None)
    assert trigger_due(datetime(2025, 3, 1, 0, 20, tzinfo=timezone.utc), None)
    assert trigger_due(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc), date(2025, 2, 28))
    assert not trigger_due(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc), date(2025, 3, 1))


def test_cron_secret_matches():
    assert cron_secret_matches("abc", "abc")
    assert not cron_secret_matches("abd", "abc")
    assert not cron_secret_matches(None, "abc")
    assert not cron_secret_matches("", "")
