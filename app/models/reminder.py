from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Computed,
    Date,
    DateTime,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import DeliveryStatus, ReminderChannel
from app.db.base import Base
from app.db.types import db_enum
from app.models.mixins import TimestampMixin


class Reminder(Base, TimestampMixin):
    __tablename__ = "reminders"
    __table_args__ = (
        Index("ix_reminders_status_scheduled_for", "delivery_status", "scheduled_for"),
        UniqueConstraint(
            "related_entity_id",
            "reminder_type",
            "stage",
            "channel",
            "scheduled_day",
            "scheduled_slot",
            name="uq_reminders_entity_stage_channel_slot",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), index=True, nullable=False)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), index=True, nullable=True)
    related_entity_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # Invoice id for rent reminders.
    related_entity_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reminder_type: Mapped[str | None] = mapped_column(String(64), nullable=True)

    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    scheduled_day: Mapped[date | None] = mapped_column(
        Date,
        Computed("((scheduled_for AT TIME ZONE 'UTC')::date)", persisted=True),
    )
    scheduled_slot: Mapped[str | None] = mapped_column(String(5), nullable=True)

    delivery_status: Mapped[DeliveryStatus] = mapped_column(
        db_enum(DeliveryStatus, "reminder_delivery_status"),
        default=DeliveryStatus.PENDING,
        nullable=False,
    )
    channel: Mapped[ReminderChannel] = mapped_column(
        db_enum(ReminderChannel, "reminder_channel"),
        default=ReminderChannel.IN_APP,
        nullable=False,
    )
    stage: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    attempt_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False, server_default="0")
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sent_via_africas_talking: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, server_default="false")
