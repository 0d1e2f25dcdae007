from __future__ import annotations

import secrets

from app.core.exceptions import UnauthorizedError


def cron_secret_matches(provided: str | None, expected: str) -> bool:
    # An unset secret never authorizes anything.
    if not expected or not provided:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def ensure_cron_secret(provided: str | None, expected: str) -> None:
    if not cron_secret_matches(provided, expected):
        raise UnauthorizedError("Invalid cron secret")
