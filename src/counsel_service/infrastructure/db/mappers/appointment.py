from __future__ import annotations

from typing import Any

from counsel_service.domain.entities.appointment import Appointment
from counsel_service.infrastructure.db.models.appointment import AppointmentModel


def model_to_entity(model: AppointmentModel) -> Appointment:
    return Appointment(
        id=model.id,
        client_id=model.client_id,
        counselor_id=model.counselor_id,
        session_date=model.session_date,
        time=model.time,
        session_type=model.session_type,
        status=model.status,
        amount=model.amount,
        payment_status=model.payment_status,
        created_at=model.created_at,
        updated_at=model.updated_at,
        duration=model.duration,
        notes=model.notes,
        session_notes=model.session_notes,
        meeting_link=model.meeting_link,
        meeting_platform=model.meeting_platform,
        meeting_created_at=model.meeting_created_at,
        session_start_time=model.session_start_time,
        session_end_time=model.session_end_time,
        notifications=list(model.notifications or []),
    )


def entity_to_model(entity: Appointment) -> AppointmentModel:
    return AppointmentModel(
        id=entity.id,
        client_id=entity.client_id,
        counselor_id=entity.counselor_id,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
        **mutable_values(entity),
    )


def mutable_values(entity: Appointment) -> dict[str, Any]:
    """Columns an UPDATE may touch."""
    return {
        "session_date": entity.session_date,
        "time": entity.time,
        "session_type": entity.session_type,
        "status": entity.status,
        "amount": entity.amount,
        "payment_status": entity.payment_status,
        "duration": entity.duration,
        "notes": entity.notes,
        "session_notes": entity.session_notes,
        "meeting_link": entity.meeting_link,
        "meeting_platform": entity.meeting_platform,
        "meeting_created_at": entity.meeting_created_at,
        "session_start_time": entity.session_start_time,
        "session_end_time": entity.session_end_time,
        "notifications": list(entity.notifications),
    }
