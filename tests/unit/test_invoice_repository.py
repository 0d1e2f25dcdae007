from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from app.repositories.invoice import InvoiceRepository


class CapturingSession:
    def __init__(self):
        self.statements = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return self

    def all(self):
        return []


@pytest.mark.asyncio
async def test_arrears_only_sums_overdue_unpaid_rent():
    session = CapturingSession()
    lease_id = uuid4()

    arrears = await InvoiceRepository(session).arrears_by_lease({lease_id}, date(2025, 4, 4))  # type: ignore[arg-type]

    assert arrears == {}
    compiled = session.statements[0].compile(dialect=postgresql.dialect())
    sql = " ".join(str(compiled).split())
    assert "invoices.invoice_type = %(invoice_type_1)s" in sql
    assert "invoices.due_date < %(due_date_1)s" in sql
    assert "GROUP BY invoices.lease_id" in sql
    assert compiled.params["invoice_type_1"] == "rent"
    assert compiled.params["due_date_1"] == date(2025, 4, 4)


@pytest.mark.asyncio
async def test_arrears_without_leases_skips_query():
    session = CapturingSession()

    assert await InvoiceRepository(session).arrears_by_lease(set(), date(2025, 4, 4)) == {}  # type: ignore[arg-type]
    assert session.statements == []
