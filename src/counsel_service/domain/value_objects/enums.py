from __future__ import annotations

from enum import StrEnum


class UserType(StrEnum):
    CLIENT = "client"
    COUNSELOR = "counselor"


class Specialization(StrEnum):
    MENTAL_HEALTH = "mental-health"
    RELATIONSHIP = "relationship"
    CAREER = "career"
    FAMILY = "family"
    ADDICTION = "addiction"
    TRAUMA = "trauma"


class AppointmentStatus(StrEnum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Appointments in these states accept new messages
ACTIVE_APPOINTMENT_STATUSES = frozenset(
    {
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.IN_PROGRESS,
    }
)


class SessionType(StrEnum):
    VIDEO = "video"
    CHAT = "chat"
    EMAIL = "email"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class MessageType(StrEnum):
    TEXT = "text"
    FILE = "file"
    IMAGE = "image"


class PaymentMethod(StrEnum):
    CARD = "card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"


class TransactionStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class NotificationType(StrEnum):
    MEETING_NOTIFICATION = "meeting_notification"
    REMINDER = "reminder"
    CANCELLATION = "cancellation"
    UPDATE = "update"
    MEETING_LINK_SHARED = "meeting_link_shared"
