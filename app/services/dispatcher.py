from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import Settings
from app.core.enums import CommunicationType, DeliveryStatus, ReminderChannel
from app.core.exceptions import PersistenceError
from app.integrations.africas_talking import format_kenya_phone
from app.integrations.redis import acquire_lock
from app.schemas.reminder import (
    DeliveryResult,
    DispatchSummary,
    InvoiceContext,
    LeaseContext,
    ProfileContext,
    ReminderRead,
    UnitContext,
)
from app.services.reminder_policy import ReminderOutcome, decide_outcome, failed_outcome
from app.services.templates import build_template_variables, render_template, select_template

logger = logging.getLogger(__name__)

NO_SENDER_ERROR = "No org admin sender found (organization_members role=admin)"
MISSING_PHONE_ERROR = "Missing tenant phone_number"
SMS_NOT_CONFIGURED_ERROR = "Africa's Talking not configured (AFRICAS_TALKING_API_KEY/USERNAME missing)"
RELATED_ENTITY_LEASE = "lease"
LOCK_KEY_PREFIX = "reminders:dispatch:lock"


class DispatchStore(Protocol):
    async def due_reminders(self, now: datetime, limit: int) -> list[ReminderRead]: ...

    async def invoices_by_ids(self, invoice_ids: Collection[UUID]) -> dict[UUID, InvoiceContext]: ...

    async def leases_by_ids(self, lease_ids: Collection[UUID]) -> dict[UUID, LeaseContext]: ...

    async def units_by_ids(self, unit_ids: Collection[UUID]) -> dict[UUID, UnitContext]: ...

    async def profiles_by_ids(self, user_ids: Collection[UUID]) -> dict[UUID, ProfileContext]: ...

    async def admin_senders(self, organization_ids: Collection[UUID]) -> dict[UUID, UUID]: ...

    async def sms_templates(self, organization_ids: Collection[UUID]) -> dict[str, str]: ...

    async def update_reminder(self, reminder_id: UUID, values: dict[str, Any]) -> None: ...

    async def insert_communication(self, values: dict[str, Any]) -> None: ...

    async def mark_invoice_reminded(self, invoice_id: UUID, stage: int, sent_at: datetime) -> None: ...


class SmsSender(Protocol):
    @property
    def configured(self) -> bool: ...

    async def send_sms(self, to: str, message: str) -> DeliveryResult: ...


@dataclass(slots=True)
class DispatcherConfig:
    batch_size: int = 200
    lock_ttl_sec: int = 600

    @classmethod
    def from_settings(cls, settings: Settings) -> "DispatcherConfig":
        return cls(batch_size=settings.dispatch_batch_size, lock_ttl_sec=settings.dispatch_lock_ttl_sec)


@dataclass(slots=True)
class DispatchContext:
    invoices: dict[UUID, InvoiceContext] = field(default_factory=dict)
    leases: dict[UUID, LeaseContext] = field(default_factory=dict)
    units: dict[UUID, UnitContext] = field(default_factory=dict)
    profiles: dict[UUID, ProfileContext] = field(default_factory=dict)
    senders: dict[UUID, UUID] = field(default_factory=dict)
    templates: dict[str, str] = field(default_factory=dict)

    def sender_for(self, reminder: ReminderRead) -> UUID | None:
        if reminder.organization_id is None:
            return None
        return self.senders.get(reminder.organization_id)

    def invoice_for(self, reminder: ReminderRead) -> InvoiceContext | None:
        if reminder.related_entity_id is None:
            return None
        return self.invoices.get(reminder.related_entity_id)

    def lease_for(self, invoice: InvoiceContext | None) -> LeaseContext | None:
        if invoice is None or invoice.lease_id is None:
            return None
        return self.leases.get(invoice.lease_id)

    def unit_for(self, lease: LeaseContext | None) -> UnitContext | None:
        if lease is None or lease.unit_id is None:
            return None
        return self.units.get(lease.unit_id)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _distinct(values) -> list:
    return list(dict.fromkeys(value for value in values if value is not None))


class ReminderDispatcher:
    """Sends due reminders in one sequential pass: load, enrich, render, send, record."""

    def __init__(
        self,
        store: DispatchStore,
        sms_client: SmsSender,
        config: DispatcherConfig | None = None,
        redis: Redis | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.sms_client = sms_client
        self.config = config or DispatcherConfig()
        self.redis = redis
        self.clock = clock

    async def run(self) -> DispatchSummary:
        summary = DispatchSummary()
        reminders = await self.store.due_reminders(self.clock(), self.config.batch_size)
        if not reminders:
            return summary

        context = await self.load_context(reminders)
        for reminder in reminders:
            if not await self._claim(reminder):
                logger.info("Reminder %s is claimed by another dispatcher, skipping", reminder.id)
                continue

            outcome = await self._process(reminder, context)
            summary.processed += 1
            if outcome.status == DeliveryStatus.SENT:
                summary.sent += 1
            elif outcome.rescheduled:
                summary.retried += 1
            else:
                summary.failed += 1

        logger.info(
            "Reminder dispatch finished: processed=%s sent=%s failed=%s retried=%s",
            summary.processed,
            summary.sent,
            summary.failed,
            summary.retried,
        )
        return summary

    async def load_context(self, reminders: list[ReminderRead]) -> DispatchContext:
        invoice_ids = _distinct(reminder.related_entity_id for reminder in reminders)
        user_ids = _distinct(reminder.user_id for reminder in reminders)
        organization_ids = _distinct(reminder.organization_id for reminder in reminders)

        context = DispatchContext()
        context.invoices = await self.store.invoices_by_ids(invoice_ids) if invoice_ids else {}

        lease_ids = _distinct(invoice.lease_id for invoice in context.invoices.values())
        context.leases = await self.store.leases_by_ids(lease_ids) if lease_ids else {}

        unit_ids = _distinct(lease.unit_id for lease in context.leases.values())
        context.units = await self.store.units_by_ids(unit_ids) if unit_ids else {}

        context.profiles = await self.store.profiles_by_ids(user_ids) if user_ids else {}

        if organization_ids:
            context.senders = await self.store.admin_senders(organization_ids)
            context.templates = await self.store.sms_templates(organization_ids)
        return context

    async def _claim(self, reminder: ReminderRead) -> bool:
        if self.redis is None:
            return True
        lock_key = f"{LOCK_KEY_PREFIX}:{reminder.id}:{reminder.attempt_count}"
        try:
            return await acquire_lock(self.redis, lock_key, self.config.lock_ttl_sec)
        except RedisError as exc:
            # Lock store down: deliver unlocked, as a single dispatcher would.
            logger.warning("Dispatch lock unavailable for reminder %s, proceeding unlocked: %s", reminder.id, exc)
            return True

    async def _process(self, reminder: ReminderRead, context: DispatchContext) -> ReminderOutcome:
        sender_id = context.sender_for(reminder)
        if sender_id is None:
            return await self._record(reminder, failed_outcome(reminder.attempt_count, NO_SENDER_ERROR))

        invoice = context.invoice_for(reminder)
        lease = context.lease_for(invoice)
        unit = context.unit_for(lease)
        profile = context.profiles.get(reminder.user_id)

        variables = build_template_variables(reminder, invoice, unit, profile)
        message = render_template(select_template(reminder, context.templates), variables.as_dict())

        communication = {
            "sender_user_id": sender_id,
            "recipient_user_id": reminder.user_id,
            "organization_id": reminder.organization_id,
            "related_entity_type": RELATED_ENTITY_LEASE,
            "related_entity_id": invoice.lease_id if invoice and invoice.lease_id else reminder.related_entity_id,
            "message_text": message,
        }

        if reminder.channel == ReminderChannel.IN_APP:
            return await self._send_in_app(reminder, communication)
        return await self._send_sms(reminder, communication, profile, invoice)

    async def _send_in_app(self, reminder: ReminderRead, communication: dict[str, Any]) -> ReminderOutcome:
        try:
            await self.store.insert_communication(
                {**communication, "message_type": CommunicationType.IN_APP.value, "read": False}
            )
            result = DeliveryResult(ok=True)
        except PersistenceError as exc:
            logger.warning("In-app reminder %s could not be stored: %s", reminder.id, exc.message)
            result = DeliveryResult(ok=False, error=f"COMM_INSERT: {exc.message}")

        outcome = decide_outcome(reminder.attempt_count, reminder.channel, result, reminder.scheduled_for, self.clock())
        return await self._record(reminder, outcome)

    async def _send_sms(
        self,
        reminder: ReminderRead,
        communication: dict[str, Any],
        profile: ProfileContext | None,
        invoice: InvoiceContext | None,
    ) -> ReminderOutcome:
        raw_phone = profile.phone_number if profile else None
        if not raw_phone:
            return await self._record(reminder, failed_outcome(reminder.attempt_count, MISSING_PHONE_ERROR))
        if not self.sms_client.configured:
            return await self._record(reminder, failed_outcome(reminder.attempt_count, SMS_NOT_CONFIGURED_ERROR))

        result = await self.sms_client.send_sms(format_kenya_phone(raw_phone), communication["message_text"])
        outcome = decide_outcome(reminder.attempt_count, reminder.channel, result, reminder.scheduled_for, self.clock())
        if not result.ok:
            logger.warning("SMS reminder %s failed on attempt %s: %s", reminder.id, outcome.attempt_count, result.error)
            return await self._record(reminder, outcome)

        try:
            await self.store.insert_communication(
                {
                    **communication,
                    "message_type": CommunicationType.SMS.value,
                    "read": True,
                    "sent_via_africas_talking": True,
                    "africas_talking_message_id": result.message_id,
                }
            )
        except PersistenceError:
            # The SMS is already out; the reminder is still marked sent.
            logger.exception("Audit row for SMS reminder %s could not be stored", reminder.id)

        outcome = await self._record(reminder, outcome, sent_via_africas_talking=True)
        if outcome.status == DeliveryStatus.SENT and reminder.stage is not None and invoice is not None:
            await self._ratchet_invoice(invoice, reminder.stage, outcome.sent_at or self.clock())
        return outcome

    async def _ratchet_invoice(self, invoice: InvoiceContext, stage: int, sent_at: datetime) -> None:
        try:
            await self.store.mark_invoice_reminded(invoice.id, stage, sent_at)
        except Exception:
            logger.exception("Failed to stamp reminder stage %s on invoice %s", stage, invoice.id)

    async def _record(self, reminder: ReminderRead, outcome: ReminderOutcome, **extra: Any) -> ReminderOutcome:
        values = {**outcome.as_update(), **extra}
        try:
            await self.store.update_reminder(reminder.id, values)
        except PersistenceError as exc:
            logger.warning("Could not record outcome for reminder %s: %s", reminder.id, exc.message)
            outcome = failed_outcome(reminder.attempt_count, f"STATUS_UPDATE: {exc.message}")
            try:
                await self.store.update_reminder(reminder.id, outcome.as_update())
            except PersistenceError:
                logger.exception("Reminder %s left pending after repeated store errors", reminder.id)
            return outcome

        if outcome.status == DeliveryStatus.FAILED:
            logger.info("Reminder %s failed: %s", reminder.id, outcome.last_error)
        elif outcome.rescheduled:
            logger.info("Reminder %s rescheduled to %s", reminder.id, outcome.scheduled_for.isoformat())
        else:
            logger.info("Reminder %s sent via %s", reminder.id, reminder.channel.value)
        return outcome
