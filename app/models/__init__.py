from app.models.communication import Communication, CronRun
from app.models.invoice import Invoice
from app.models.lease import ApartmentUnit, Lease
from app.models.organization import OrganizationMember, SmsTemplate, UserProfile
from app.models.reminder import Reminder

__all__ = [
    "Reminder",
    "Invoice",
    "Lease",
    "ApartmentUnit",
    "UserProfile",
    "OrganizationMember",
    "SmsTemplate",
    "Communication",
    "CronRun",
]
