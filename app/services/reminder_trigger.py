"""Daily enqueueing of staged rent reminders.

Stages for an invoice, relative to today's UTC date:

1. three days before the end of the month preceding ``period_start``
2. ``period_start``
3. ``due_date``
4. ``due_date`` + 7 days
5. ``due_date`` + 30 days

Each stage produces one SMS at 00:30 UTC and in-app messages at 00:30 and
14:00 UTC. Invoices already advanced to the stage by a successful SMS are
skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

from app.core.enums import DeliveryStatus, ReminderChannel, ReminderSlot, ReminderType
from app.schemas.reminder import RentCandidate, TriggerSummary

logger = logging.getLogger(__name__)

ARREARS_STAGE = 5
SLOT_TIMES = {
    ReminderSlot.EARLY: time(0, 30, tzinfo=timezone.utc),
    ReminderSlot.AFTERNOON: time(14, 0, tzinfo=timezone.utc),
}
DELIVERY_PLAN = (
    (ReminderChannel.SMS, ReminderSlot.EARLY),
    (ReminderChannel.IN_APP, ReminderSlot.EARLY),
    (ReminderChannel.IN_APP, ReminderSlot.AFTERNOON),
)


class TriggerStore(Protocol):
    async def rent_candidates(self) -> list[RentCandidate]: ...

    async def arrears_by_lease(self, lease_ids: Collection[UUID], today: date) -> dict[UUID, Decimal]: ...

    async def insert_reminders(self, rows: Iterable[dict[str, Any]]) -> int: ...


def _month_end_before(period_start: date) -> date:
    return period_start.replace(day=1) - timedelta(days=1)


def compute_stage(today: date, period_start: date, due_date: date | None) -> int | None:
    stage_days = [
        (1, _month_end_before(period_start) - timedelta(days=3)),
        (2, period_start),
    ]
    if due_date is not None:
        stage_days += [
            (3, due_date),
            (4, due_date + timedelta(days=7)),
            (5, due_date + timedelta(days=30)),
        ]
    for stage, day in stage_days:
        if today == day:
            return stage
    return None


def is_paid(candidate: RentCandidate) -> bool:
    if candidate.status_text:
        return candidate.status_text == "paid"
    return candidate.status is True


def is_prepaid(candidate: RentCandidate) -> bool:
    if candidate.rent_paid_until is None:
        return False
    return candidate.rent_paid_until >= candidate.period_start


def template_key_for_stage(stage: int) -> str:
    return f"rent_stage_{stage}"


def _as_number(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def build_reminder_rows(
    candidate: RentCandidate,
    stage: int,
    today: date,
    arrears_amount: Decimal | None = None,
) -> list[dict[str, Any]]:
    template_key = template_key_for_stage(stage)
    payload = {
        "template_key": template_key,
        "invoice_id": str(candidate.invoice_id),
        "lease_id": str(candidate.lease_id),
        "period_start": candidate.period_start.isoformat(),
        "due_date": candidate.due_date.isoformat() if candidate.due_date else None,
        "amount": _as_number(candidate.amount),
        "stage": stage,
        "arrears_amount": _as_number(arrears_amount) if stage == ARREARS_STAGE else None,
    }
    message = f"rent {template_key} (invoice {candidate.invoice_id})"

    rows = []
    for channel, slot in DELIVERY_PLAN:
        rows.append(
            {
                "user_id": candidate.tenant_user_id,
                "organization_id": candidate.organization_id,
                "related_entity_type": "lease",
                "related_entity_id": candidate.invoice_id,
                "reminder_type": ReminderType.RENT_PAYMENT.value,
                "delivery_status": DeliveryStatus.PENDING,
                "channel": channel,
                "stage": stage,
                "scheduled_slot": slot.value,
                "scheduled_for": datetime.combine(today, SLOT_TIMES[slot]),
                "payload": payload,
                "message": message,
            }
        )
    return rows


class ReminderTrigger:
    def __init__(self, store: TriggerStore) -> None:
        self.store = store

    async def run(self, today: date) -> TriggerSummary:
        candidates = await self.store.rent_candidates()

        staged: list[tuple[RentCandidate, int]] = []
        for candidate in candidates:
            if is_paid(candidate) or is_prepaid(candidate):
                continue
            stage = compute_stage(today, candidate.period_start, candidate.due_date)
            if stage is None:
                continue
            if candidate.last_reminder_stage is not None and candidate.last_reminder_stage >= stage:
                continue
            staged.append((candidate, stage))

        arrears_lease_ids = {candidate.lease_id for candidate, stage in staged if stage == ARREARS_STAGE}
        arrears = await self.store.arrears_by_lease(arrears_lease_ids, today) if arrears_lease_ids else {}

        rows: list[dict[str, Any]] = []
        for candidate, stage in staged:
            rows.extend(build_reminder_rows(candidate, stage, today, arrears.get(candidate.lease_id)))

        inserted = await self.store.insert_reminders(rows) if rows else 0
        logger.info(
            "Reminder trigger for %s: candidates=%s staged=%s inserted=%s",
            today.isoformat(),
            len(candidates),
            len(staged),
            inserted,
        )
        return TriggerSummary(inserted=inserted, candidates=len(candidates))
