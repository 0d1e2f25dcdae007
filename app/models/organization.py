from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import CreatedAtMixin, TimestampMixin, UUIDPrimaryKeyMixin


class UserProfile(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "user_profiles"

    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)


class OrganizationMember(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "organization_members"
    __table_args__ = (Index("ix_organization_members_org_role", "organization_id", "role"),)

    organization_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("user_profiles.id"), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False)


class SmsTemplate(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "sms_templates"
    __table_args__ = (UniqueConstraint("organization_id", "template_key", name="uq_sms_templates_org_key"),)

    organization_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    template_key: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
