from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import DeliveryStatus, ReminderChannel
from app.schemas.common import BaseReadModel, JobResult


class ReminderRead(BaseReadModel):
    id: UUID
    user_id: UUID
    organization_id: UUID | None = None
    related_entity_id: UUID | None = None
    reminder_type: str | None = None
    scheduled_for: datetime
    delivery_status: DeliveryStatus = DeliveryStatus.PENDING
    channel: ReminderChannel
    stage: int | None = None
    scheduled_slot: str | None = None
    attempt_count: int = 0
    last_error: str | None = None
    payload: dict[str, Any] | None = None
    message: str | None = None


class InvoiceContext(BaseReadModel):
    id: UUID
    lease_id: UUID | None = None
    amount: Decimal | None = None
    due_date: date | None = None
    period_start: date | None = None
    status_text: str | None = None
    status: bool | None = None


class LeaseContext(BaseReadModel):
    id: UUID
    unit_id: UUID | None = None
    tenant_user_id: UUID | None = None
    rent_paid_until: date | None = None
    status: str | None = None
    organization_id: UUID | None = None


class UnitContext(BaseReadModel):
    id: UUID
    unit_number: str | None = None


class ProfileContext(BaseReadModel):
    id: UUID
    full_name: str | None = None
    phone_number: str | None = None


class DeliveryResult(BaseModel):
    """Outcome of a single send attempt on any channel."""

    ok: bool
    message_id: str | None = None
    error: str | None = None


class DispatchSummary(JobResult):
    processed: int = 0
    sent: int = 0
    failed: int = 0
    retried: int = 0


class RentCandidate(BaseModel):
    invoice_id: UUID
    lease_id: UUID
    organization_id: UUID | None = None
    tenant_user_id: UUID
    amount: Decimal | None = None
    due_date: date | None = None
    period_start: date
    status_text: str | None = None
    status: bool | None = None
    rent_paid_until: date | None = None
    last_reminder_stage: int | None = None


class TriggerSummary(JobResult):
    inserted: int = 0
    candidates: int = Field(default=0, exclude=True)


def template_key_for(organization_id: object, template_key: str) -> str:
    org = "" if organization_id is None else str(organization_id)
    return f"{org}:{template_key}"
