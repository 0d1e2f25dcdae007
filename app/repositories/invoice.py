from __future__ import annotations

from collections.abc import Collection
from datetime import date, datetime
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import LeaseStatus
from app.models import Invoice, Lease

RENT_INVOICE_TYPE = "rent"
PAID_STATUS_TEXT = "paid"


def _unpaid_clause():
    return or_(
        and_(Invoice.status_text.is_not(None), Invoice.status_text != PAID_STATUS_TEXT),
        and_(Invoice.status_text.is_(None), Invoice.status.is_not(True)),
    )


class InvoiceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def by_ids(self, invoice_ids: Collection[UUID]) -> Sequence[Invoice]:
        if not invoice_ids:
            return []
        result = await self.session.scalars(select(Invoice).where(Invoice.id.in_(list(invoice_ids))))
        return result.all()

    async def mark_reminder_stage(self, invoice_id: UUID, stage: int, sent_at: datetime) -> None:
        await self.session.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id)
            .values(last_reminder_stage=stage, last_reminder_sent_at=sent_at)
        )

    async def rent_candidates(self) -> Sequence[tuple[Invoice, Lease]]:
        stmt = (
            select(Invoice, Lease)
            .join(Lease, Invoice.lease_id == Lease.id)
            .where(
                Invoice.invoice_type == RENT_INVOICE_TYPE,
                Invoice.period_start.is_not(None),
                Lease.status == LeaseStatus.ACTIVE.value,
                Lease.tenant_user_id.is_not(None),
            )
            .order_by(Invoice.period_start.asc())
        )
        result = await self.session.execute(stmt)
        return [(invoice, lease) for invoice, lease in result.all()]

    async def arrears_by_lease(self, lease_ids: Collection[UUID], today: date) -> dict[UUID, Decimal]:
        if not lease_ids:
            return {}
        stmt = (
            select(Invoice.lease_id, func.coalesce(func.sum(Invoice.amount), 0))
            .where(
                Invoice.lease_id.in_(list(lease_ids)),
                Invoice.invoice_type == RENT_INVOICE_TYPE,
                Invoice.due_date < today,
                _unpaid_clause(),
            )
            .group_by(Invoice.lease_id)
        )
        result = await self.session.execute(stmt)
        return {lease_id: Decimal(total) for lease_id, total in result.all()}
