"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-03-02 09:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    delivery_status = postgresql.ENUM("pending", "sent", "failed", name="reminder_delivery_status", create_type=False)
    channel = postgresql.ENUM("sms", "in_app", name="reminder_channel", create_type=False)

    bind = op.get_bind()
    postgresql.ENUM("pending", "sent", "failed", name="reminder_delivery_status").create(bind, checkfirst=True)
    postgresql.ENUM("sms", "in_app", name="reminder_channel").create(bind, checkfirst=True)

    op.create_table(
        "user_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
    )

    op.create_table(
        "apartment_units",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("unit_number", sa.String(length=32), nullable=True),
    )

    op.create_table(
        "leases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("unit_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("apartment_units.id"), nullable=True),
        sa.Column("tenant_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("rent_paid_until", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=True),
    )
    op.create_index("ix_leases_tenant_user_id", "leases", ["tenant_user_id"], unique=False)
    op.create_index("ix_leases_organization_id", "leases", ["organization_id"], unique=False)

    op.create_table(
        "invoices",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("lease_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("leases.id"), nullable=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("invoice_type", sa.String(length=32), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=True),
        sa.Column("status_text", sa.String(length=32), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=True),
        sa.Column("last_reminder_stage", sa.SmallInteger(), nullable=True),
        sa.Column("last_reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_invoices_lease_id", "invoices", ["lease_id"], unique=False)
    op.create_index("ix_invoices_organization_id", "invoices", ["organization_id"], unique=False)

    op.create_table(
        "organization_members",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_organization_members_org_role", "organization_members", ["organization_id", "role"], unique=False)

    op.create_table(
        "sms_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_key", sa.String(length=64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("organization_id", "template_key", name="uq_sms_templates_org_key"),
    )

    op.create_table(
        "reminders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("related_entity_type", sa.String(length=32), nullable=True),
        sa.Column("related_entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reminder_type", sa.String(length=64), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "scheduled_day",
            sa.Date(),
            sa.Computed("((scheduled_for AT TIME ZONE 'UTC')::date)", persisted=True),
        ),
        sa.Column("scheduled_slot", sa.String(length=5), nullable=True),
        sa.Column("delivery_status", delivery_status, nullable=False),
        sa.Column("channel", channel, nullable=False),
        sa.Column("stage", sa.SmallInteger(), nullable=True),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sent_via_africas_talking", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "related_entity_id",
            "reminder_type",
            "stage",
            "channel",
            "scheduled_day",
            "scheduled_slot",
            name="uq_reminders_entity_stage_channel_slot",
        ),
    )
    op.create_index("ix_reminders_user_id", "reminders", ["user_id"], unique=False)
    op.create_index("ix_reminders_organization_id", "reminders", ["organization_id"], unique=False)
    op.create_index("ix_reminders_status_scheduled_for", "reminders", ["delivery_status", "scheduled_for"], unique=False)

    op.create_table(
        "communications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("sender_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("recipient_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("related_entity_type", sa.String(length=32), nullable=True),
        sa.Column("related_entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("message_text", sa.Text(), nullable=False),
        sa.Column("message_type", sa.String(length=16), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("sent_via_africas_talking", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("africas_talking_message_id", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_communications_recipient_user_id", "communications", ["recipient_user_id"], unique=False)
    op.create_index("ix_communications_organization_id", "communications", ["organization_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_communications_organization_id", table_name="communications")
    op.drop_index("ix_communications_recipient_user_id", table_name="communications")
    op.drop_table("communications")

    op.drop_index("ix_reminders_status_scheduled_for", table_name="reminders")
    op.drop_index("ix_reminders_organization_id", table_name="reminders")
    op.drop_index("ix_reminders_user_id", table_name="reminders")
    op.drop_table("reminders")

    op.drop_table("sms_templates")
    op.drop_index("ix_organization_members_org_role", table_name="organization_members")
    op.drop_table("organization_members")
    op.drop_index("ix_invoices_organization_id", table_name="invoices")
    op.drop_index("ix_invoices_lease_id", table_name="invoices")
    op.drop_table("invoices")
    op.drop_index("ix_leases_organization_id", table_name="leases")
    op.drop_index("ix_leases_tenant_user_id", table_name="leases")
    op.drop_table("leases")
    op.drop_table("apartment_units")
    op.drop_table("user_profiles")

    bind = op.get_bind()
    postgresql.ENUM(name="reminder_channel").drop(bind, checkfirst=True)
    postgresql.ENUM(name="reminder_delivery_status").drop(bind, checkfirst=True)
