from __future__ import annotations


class AppError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized", details: dict | None = None) -> None:
        super().__init__(code="unauthorized", message=message, status_code=401, details=details)


class PersistenceError(AppError):
    def __init__(self, message: str = "Database operation failed", details: dict | None = None) -> None:
        super().__init__(code="persistence_error", message=message, status_code=500, details=details)
