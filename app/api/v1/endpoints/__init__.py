from app.api.v1.endpoints import cron

__all__ = ["cron"]
