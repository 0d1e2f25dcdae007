from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from app.core.enums import ReminderChannel
from app.schemas.reminder import InvoiceContext, ProfileContext, ReminderRead, UnitContext
from app.services.templates import (
    build_template_variables,
    format_money,
    month_label,
    render_template,
    select_template,
)


def make_reminder(**overrides):
    values = {
        "id": uuid4(),
        "user_id": uuid4(),
        "organization_id": uuid4(),
        "scheduled_for": datetime(2025, 2, 1, 0, 30, tzinfo=timezone.utc),
        "channel": ReminderChannel.SMS,
    }
    values.update(overrides)
    return ReminderRead(**values)


def test_render_template_keeps_unknown_placeholders():
    rendered = render_template(
        "Hi {{tenant_name}}, {{tenant_name}} owes {{amount}} {{mystery}}",
        {"tenant_name": "Jane", "amount": "10.00"},
    )
    assert rendered == "Hi Jane, Jane owes 10.00 {{mystery}}"


def test_format_money():
    assert format_money(1500) == "1500.00"
    assert format_money("12.5") == "12.50"
    assert format_money(Decimal("99.999")) == "100.00"
    assert format_money(None) == "0.00"
    assert format_money("") == "0.00"
    assert format_money("abc") == "0.00"
    assert format_money("NaN") == "0.00"
    assert format_money("Infinity") == "0.00"


def test_month_label():
    assert month_label("2025-01-01") == "January 2025"
    assert month_label(date(2024, 12, 1)) == "December 2024"
    assert month_label("not a date") == ""


def test_payload_values_win_over_invoice():
    invoice = InvoiceContext(
        id=uuid4(),
        amount=Decimal("900.00"),
        due_date=date(2025, 2, 10),
        period_start=date(2025, 2, 1),
    )
    reminder = make_reminder(
        related_entity_id=invoice.id,
        payload={"amount": 1500, "due_date": "2025-02-05", "period_start": "2025-03-01"},
    )

    variables = build_template_variables(
        reminder,
        invoice,
        UnitContext(id=uuid4(), unit_number="B4"),
        ProfileContext(id=reminder.user_id, full_name="Jane Wanjiku"),
    )

    assert variables.as_dict() == {
        "tenant_name": "Jane Wanjiku",
        "unit_label": "B4",
        "amount": "1500.00",
        "due_date": "2025-02-05",
        "period_label": "March 2025",
        "arrears_total": "",
    }


def test_invoice_fills_missing_payload_values():
    invoice = InvoiceContext(id=uuid4(), amount=Decimal("900"), due_date=date(2025, 2, 10), period_start=date(2025, 2, 1))
    variables = build_template_variables(make_reminder(payload=None), invoice, None, None)

    assert variables.tenant_name == "Tenant"
    assert variables.unit_label == ""
    assert variables.amount == "900.00"
    assert variables.due_date == "2025-02-10"
    assert variables.period_label == "February 2025"


def test_missing_context_renders_defaults():
    variables = build_template_variables(make_reminder(), None, None, ProfileContext(id=uuid4(), full_name=None))

    assert variables.tenant_name == "Tenant"
    assert variables.amount == "0.00"
    assert variables.due_date == ""
    assert variables.period_label == ""


def test_select_template_prefers_organization_template():
    reminder = make_reminder(payload={"template_key": "rent_stage_2"}, message="fallback")
    templates = {f"{reminder.organization_id}:rent_stage_2": "Hello {{tenant_name}}"}

    assert select_template(reminder, templates) == "Hello {{tenant_name}}"


def test_select_template_ignores_other_organizations():
    reminder = make_reminder(payload={"template_key": "rent_stage_2"}, message="fallback")
    templates = {f"{uuid4()}:rent_stage_2": "Hello"}

    assert select_template(reminder, templates) == "fallback"


def test_select_template_default():
    assert select_template(make_reminder(payload={"template_key": "missing"}), {}) == "Reminder"


def test_blank_tenant_name_is_kept():
    variables = build_template_variables(make_reminder(), None, None, ProfileContext(id=uuid4(), full_name=""))

    assert variables.tenant_name == ""
