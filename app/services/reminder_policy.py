"""Delivery outcome rules for a single reminder.

A reminder moves ``pending -> sent`` or ``pending -> failed``. The only
self-loop is the first failed SMS attempt, which stays ``pending`` and is
moved to 14:00 UTC on the day it was originally scheduled for.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Any

from app.core.enums import DeliveryStatus, ReminderChannel, ReminderSlot
from app.schemas.reminder import DeliveryResult

RETRY_TIME_UTC = time(14, 0, tzinfo=timezone.utc)
DEFAULT_SMS_ERROR = "SMS failed"


@dataclass(frozen=True, slots=True)
class ReminderOutcome:
    status: DeliveryStatus
    attempt_count: int
    last_error: str | None = None
    sent_at: datetime | None = None
    scheduled_for: datetime | None = None
    scheduled_slot: str | None = None

    @property
    def rescheduled(self) -> bool:
        return self.status == DeliveryStatus.PENDING and self.scheduled_for is not None

    def as_update(self) -> dict[str, Any]:
        values: dict[str, Any] = {
            "delivery_status": self.status,
            "attempt_count": self.attempt_count,
            "last_error": self.last_error,
        }
        if self.status == DeliveryStatus.SENT:
            values["sent_at"] = self.sent_at
        if self.scheduled_for is not None:
            values["scheduled_for"] = self.scheduled_for
            values["scheduled_slot"] = self.scheduled_slot
        return values


def retry_time_for(scheduled_for: datetime) -> datetime:
    if scheduled_for.tzinfo is None:
        scheduled_for = scheduled_for.replace(tzinfo=timezone.utc)
    day = scheduled_for.astimezone(timezone.utc).date()
    return datetime.combine(day, RETRY_TIME_UTC)


def failed_outcome(attempt_count: int, error: str) -> ReminderOutcome:
    return ReminderOutcome(status=DeliveryStatus.FAILED, attempt_count=attempt_count + 1, last_error=error)


def decide_outcome(
    attempt_count: int,
    channel: ReminderChannel,
    send_result: DeliveryResult,
    scheduled_for: datetime,
    now: datetime,
) -> ReminderOutcome:
    next_attempt = attempt_count + 1
    if send_result.ok:
        return ReminderOutcome(status=DeliveryStatus.SENT, attempt_count=next_attempt, sent_at=now)

    if channel == ReminderChannel.SMS:
        error = send_result.error or DEFAULT_SMS_ERROR
        if attempt_count == 0:
            return ReminderOutcome(
                status=DeliveryStatus.PENDING,
                attempt_count=next_attempt,
                last_error=error,
                scheduled_for=retry_time_for(scheduled_for),
                scheduled_slot=ReminderSlot.AFTERNOON.value,
            )
        return ReminderOutcome(status=DeliveryStatus.FAILED, attempt_count=next_attempt, last_error=error)

    # In-app failures come from the local store and are not retried.
    return ReminderOutcome(
        status=DeliveryStatus.FAILED,
        attempt_count=next_attempt,
        last_error=send_result.error or "In-app delivery failed",
    )
