"""SQLAlchemy-backed stores used by the reminder dispatcher and trigger.

Every write is committed on its own so a reminder's outcome is durable as
soon as it is decided. Database errors are rolled back and re-raised as
``PersistenceError``.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PersistenceError
from app.repositories.communication import CommunicationRepository
from app.repositories.invoice import InvoiceRepository
from app.repositories.lease import ApartmentUnitRepository, LeaseRepository
from app.repositories.organization import OrganizationMemberRepository, SmsTemplateRepository, UserProfileRepository
from app.repositories.reminder import ReminderRepository
from app.schemas.reminder import (
    InvoiceContext,
    LeaseContext,
    ProfileContext,
    ReminderRead,
    RentCandidate,
    UnitContext,
    template_key_for,
)


class _SessionStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(str(exc)) from exc

    async def _rollback(self, exc: SQLAlchemyError) -> PersistenceError:
        await self.session.rollback()
        return PersistenceError(str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc))


class SqlDispatchStore(_SessionStore):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.reminders = ReminderRepository(session)
        self.invoices = InvoiceRepository(session)
        self.leases = LeaseRepository(session)
        self.units = ApartmentUnitRepository(session)
        self.profiles = UserProfileRepository(session)
        self.members = OrganizationMemberRepository(session)
        self.templates = SmsTemplateRepository(session)
        self.communications = CommunicationRepository(session)

    async def due_reminders(self, now: datetime, limit: int) -> list[ReminderRead]:
        rows = await self.reminders.due_for_delivery(now, batch_size=limit)
        return [ReminderRead.model_validate(row) for row in rows]

    async def invoices_by_ids(self, invoice_ids: Collection[UUID]) -> dict[UUID, InvoiceContext]:
        return {row.id: InvoiceContext.model_validate(row) for row in await self.invoices.by_ids(invoice_ids)}

    async def leases_by_ids(self, lease_ids: Collection[UUID]) -> dict[UUID, LeaseContext]:
        return {row.id: LeaseContext.model_validate(row) for row in await self.leases.by_ids(lease_ids)}

    async def units_by_ids(self, unit_ids: Collection[UUID]) -> dict[UUID, UnitContext]:
        return {row.id: UnitContext.model_validate(row) for row in await self.units.by_ids(unit_ids)}

    async def profiles_by_ids(self, user_ids: Collection[UUID]) -> dict[UUID, ProfileContext]:
        return {row.id: ProfileContext.model_validate(row) for row in await self.profiles.by_ids(user_ids)}

    async def admin_senders(self, organization_ids: Collection[UUID]) -> dict[UUID, UUID]:
        senders: dict[UUID, UUID] = {}
        for member in await self.members.admins_by_organizations(organization_ids):
            senders.setdefault(member.organization_id, member.user_id)
        return senders

    async def sms_templates(self, organization_ids: Collection[UUID]) -> dict[str, str]:
        return {
            template_key_for(row.organization_id, row.template_key): row.content
            for row in await self.templates.by_organizations(organization_ids)
        }

    async def update_reminder(self, reminder_id: UUID, values: dict[str, Any]) -> None:
        try:
            await self.reminders.update_fields(reminder_id, values)
        except SQLAlchemyError as exc:
            raise await self._rollback(exc) from exc
        await self._commit()

    async def insert_communication(self, values: dict[str, Any]) -> None:
        try:
            await self.communications.create(values)
        except SQLAlchemyError as exc:
            raise await self._rollback(exc) from exc
        await self._commit()

    async def mark_invoice_reminded(self, invoice_id: UUID, stage: int, sent_at: datetime) -> None:
        try:
            await self.invoices.mark_reminder_stage(invoice_id, stage, sent_at)
        except SQLAlchemyError as exc:
            raise await self._rollback(exc) from exc
        await self._commit()


class SqlTriggerStore(_SessionStore):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.invoices = InvoiceRepository(session)
        self.reminders = ReminderRepository(session)

    async def rent_candidates(self) -> list[RentCandidate]:
        candidates = []
        for invoice, lease in await self.invoices.rent_candidates():
            candidates.append(
                RentCandidate(
                    invoice_id=invoice.id,
                    lease_id=lease.id,
                    organization_id=invoice.organization_id,
                    tenant_user_id=lease.tenant_user_id,
                    amount=invoice.amount,
                    due_date=invoice.due_date,
                    period_start=invoice.period_start,
                    status_text=invoice.status_text,
                    status=invoice.status,
                    rent_paid_until=lease.rent_paid_until,
                    last_reminder_stage=invoice.last_reminder_stage,
                )
            )
        return candidates

    async def arrears_by_lease(self, lease_ids: Collection[UUID], today: date) -> dict[UUID, Decimal]:
        return await self.invoices.arrears_by_lease(lease_ids, today)

    async def insert_reminders(self, rows: Iterable[dict[str, Any]]) -> int:
        try:
            inserted = await self.reminders.insert_ignoring_duplicates(rows)
        except SQLAlchemyError as exc:
            raise await self._rollback(exc) from exc
        await self._commit()
        return len(inserted)
