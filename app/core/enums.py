from enum import Enum


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class ReminderChannel(str, Enum):
    SMS = "sms"
    IN_APP = "in_app"


class ReminderSlot(str, Enum):
    EARLY = "00:30"
    AFTERNOON = "14:00"


class ReminderType(str, Enum):
    RENT_PAYMENT = "rent_payment"


class MemberRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CARETAKER = "caretaker"
    TENANT = "tenant"


class CommunicationType(str, Enum):
    IN_APP = "in_app"
    SMS = "sms"


class LeaseStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"
    PENDING = "pending"
