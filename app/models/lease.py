from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin


class Lease(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "leases"

    unit_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("apartment_units.id"), nullable=True)
    tenant_user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), index=True, nullable=True)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), index=True, nullable=True)
    rent_paid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)

    unit = relationship("ApartmentUnit")
    invoices = relationship("Invoice", back_populates="lease")


class ApartmentUnit(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "apartment_units"

    unit_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
