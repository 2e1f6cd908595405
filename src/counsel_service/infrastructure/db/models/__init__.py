"""Import all models so Base.metadata knows every table."""
from counsel_service.infrastructure.db.base import Base
from counsel_service.infrastructure.db.models.appointment import AppointmentModel
from counsel_service.infrastructure.db.models.message import MessageModel
from counsel_service.infrastructure.db.models.outbox import OutboxEventModel
from counsel_service.infrastructure.db.models.payment import PaymentModel
from counsel_service.infrastructure.db.models.user import UserModel

__all__ = [
    "AppointmentModel",
    "Base",
    "MessageModel",
    "OutboxEventModel",
    "PaymentModel",
    "UserModel",
]
