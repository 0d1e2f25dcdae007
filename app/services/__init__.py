from app.services.cron_runs import CronRunService
from app.services.dispatcher import DispatcherConfig, ReminderDispatcher
from app.services.reminder_trigger import ReminderTrigger

__all__ = [
    "CronRunService",
    "DispatcherConfig",
    "ReminderDispatcher",
    "ReminderTrigger",
]
