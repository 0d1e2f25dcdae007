from __future__ import annotations

import calendar
import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from app.schemas.reminder import InvoiceContext, ProfileContext, ReminderRead, UnitContext, template_key_for

DEFAULT_TEMPLATE = "Reminder"
DEFAULT_TENANT_NAME = "Tenant"


@dataclass(slots=True)
class TemplateVariables:
    tenant_name: str = DEFAULT_TENANT_NAME
    unit_label: str = ""
    amount: str = "0.00"
    due_date: str = ""
    period_label: str = ""
    # Placeholder kept so templates that reference it render as empty text.
    arrears_total: str = ""

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


def format_money(value: object) -> str:
    if isinstance(value, bool):
        value = int(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        return "0.00"
    try:
        number = float(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return "0.00"
    if not math.isfinite(number):
        return "0.00"
    return f"{number:.2f}"


def month_label(period_start: date | str) -> str:
    """Turn a ``YYYY-MM-DD`` period start into ``"January 2025"``."""
    if isinstance(period_start, date):
        parsed = period_start
    else:
        try:
            parsed = date.fromisoformat(str(period_start).strip()[:10])
        except ValueError:
            return ""
    return f"{calendar.month_name[parsed.month]} {parsed.year}"


def render_template(template: str, variables: Mapping[str, str]) -> str:
    rendered = template
    for name, value in variables.items():
        rendered = rendered.replace("{{" + name + "}}", value)
    return rendered


def _first_present(*values: object) -> object | None:
    for value in values:
        if value is not None:
            return value
    return None


def build_template_variables(
    reminder: ReminderRead,
    invoice: InvoiceContext | None,
    unit: UnitContext | None,
    profile: ProfileContext | None,
) -> TemplateVariables:
    payload = reminder.payload or {}

    due_date = _first_present(payload.get("due_date"), invoice.due_date if invoice else None)

    period_start = payload.get("period_start") or (invoice.period_start if invoice else None)
    period_label = month_label(period_start) if period_start else ""

    return TemplateVariables(
        tenant_name=_first_present(profile.full_name if profile else None, DEFAULT_TENANT_NAME),
        unit_label=(unit.unit_number if unit else None) or "",
        amount=format_money(_first_present(payload.get("amount"), invoice.amount if invoice else None, 0)),
        due_date=str(due_date) if due_date is not None else "",
        period_label=period_label,
    )


def select_template(reminder: ReminderRead, templates: Mapping[str, str]) -> str:
    template_key = (reminder.payload or {}).get("template_key")
    if template_key:
        content = templates.get(template_key_for(reminder.organization_id, template_key))
        if content is not None:
            return content
    if reminder.message is not None:
        return reminder.message
    return DEFAULT_TEMPLATE
