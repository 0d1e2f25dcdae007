from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.enums import DeliveryStatus, ReminderChannel
from app.schemas.reminder import RentCandidate
from app.services.reminder_trigger import ReminderTrigger, build_reminder_rows, compute_stage, is_paid, is_prepaid

PERIOD_START = date(2025, 3, 1)
DUE_DATE = date(2025, 3, 5)


class FakeTriggerStore:
    def __init__(self, candidates, arrears=None):
        self.candidates = candidates
        self.arrears = arrears or {}
        self.arrears_requests = []
        self.rows = []
        self._keys = set()

    async def rent_candidates(self):
        return list(self.candidates)

    async def arrears_by_lease(self, lease_ids, today):
        self.arrears_requests.append(set(lease_ids))
        return {lease_id: self.arrears[lease_id] for lease_id in lease_ids if lease_id in self.arrears}

    async def insert_reminders(self, rows):
        inserted = 0
        for row in rows:
            key = (
                row["related_entity_id"],
                row["reminder_type"],
                row["stage"],
                row["channel"],
                row["scheduled_for"].date(),
                row["scheduled_slot"],
            )
            if key in self._keys:
                continue
            self._keys.add(key)
            self.rows.append(row)
            inserted += 1
        return inserted


def make_candidate(**overrides):
    values = {
        "invoice_id": uuid4(),
        "lease_id": uuid4(),
        "organization_id": uuid4(),
        "tenant_user_id": uuid4(),
        "amount": Decimal("1500.00"),
        "due_date": DUE_DATE,
        "period_start": PERIOD_START,
        "status_text": "unpaid",
    }
    values.update(overrides)
    return RentCandidate(**values)


@pytest.mark.parametrize(
    ("today", "stage"),
    [
        (date(2025, 2, 25), 1),
        (date(2025, 3, 1), 2),
        (date(2025, 3, 5), 3),
        (date(2025, 3, 12), 4),
        (date(2025, 4, 4), 5),
        (date(2025, 3, 2), None),
    ],
)
def test_compute_stage(today, stage):
    assert compute_stage(today, PERIOD_START, DUE_DATE) == stage


def test_compute_stage_without_due_date():
    assert compute_stage(date(2025, 3, 1), PERIOD_START, None) == 2
    assert compute_stage(DUE_DATE, PERIOD_START, None) is None


def test_paid_and_prepaid_checks():
    assert is_paid(make_candidate(status_text="paid"))
    assert not is_paid(make_candidate(status_text="partial", status=True))
    assert is_paid(make_candidate(status_text=None, status=True))
    assert is_prepaid(make_candidate(rent_paid_until=date(2025, 3, 31)))
    assert not is_prepaid(make_candidate(rent_paid_until=date(2025, 2, 28)))


def test_build_reminder_rows_plans_three_deliveries():
    candidate = make_candidate()
    rows = build_reminder_rows(candidate, 3, DUE_DATE)

    assert [(row["channel"], row["scheduled_slot"], row["scheduled_for"]) for row in rows] == [
        (ReminderChannel.SMS, "00:30", datetime(2025, 3, 5, 0, 30, tzinfo=timezone.utc)),
        (ReminderChannel.IN_APP, "00:30", datetime(2025, 3, 5, 0, 30, tzinfo=timezone.utc)),
        (ReminderChannel.IN_APP, "14:00", datetime(2025, 3, 5, 14, 0, tzinfo=timezone.utc)),
    ]
    first = rows[0]
    assert first["delivery_status"] == DeliveryStatus.PENDING
    assert first["user_id"] == candidate.tenant_user_id
    assert first["related_entity_id"] == candidate.invoice_id
    assert first["message"] == f"rent rent_stage_3 (invoice {candidate.invoice_id})"
    assert first["payload"] == {
        "template_key": "rent_stage_3",
        "invoice_id": str(candidate.invoice_id),
        "lease_id": str(candidate.lease_id),
        "period_start": "2025-03-01",
        "due_date": "2025-03-05",
        "amount": 1500.0,
        "stage": 3,
        "arrears_amount": None,
    }


@pytest.mark.asyncio
async def test_trigger_enqueues_staged_invoices_once():
    due = make_candidate()
    paid = make_candidate(status_text="paid")
    prepaid = make_candidate(rent_paid_until=date(2025, 3, 31))
    already_reminded = make_candidate(last_reminder_stage=3)
    store = FakeTriggerStore([due, paid, prepaid, already_reminded])

    summary = await ReminderTrigger(store).run(DUE_DATE)

    assert summary.model_dump() == {"ok": True, "inserted": 3}
    assert summary.candidates == 4
    assert {row["related_entity_id"] for row in store.rows} == {due.invoice_id}
    assert store.arrears_requests == []

    again = await ReminderTrigger(store).run(DUE_DATE)
    assert again.inserted == 0
    assert len(store.rows) == 3


@pytest.mark.asyncio
async def test_trigger_adds_arrears_on_final_stage():
    late = make_candidate()
    store = FakeTriggerStore([late], arrears={late.lease_id: Decimal("4500.00")})

    summary = await ReminderTrigger(store).run(date(2025, 4, 4))

    assert summary.inserted == 3
    assert store.arrears_requests == [{late.lease_id}]
    assert {row["payload"]["arrears_amount"] for row in store.rows} == {4500.0}
    assert {row["stage"] for row in store.rows} == {5}


@pytest.mark.asyncio
async def test_trigger_without_staged_invoices_inserts_nothing():
    store = FakeTriggerStore([make_candidate()])

    summary = await ReminderTrigger(store).run(date(2025, 3, 20))

    assert summary.inserted == 0
    assert store.rows == []
