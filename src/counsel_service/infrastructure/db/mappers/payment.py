from __future__ import annotations

from counsel_service.domain.entities.payment import Payment
from counsel_service.infrastructure.db.models.payment import PaymentModel


def model_to_entity(model: PaymentModel) -> Payment:
    return Payment(
        id=model.id,
        client_id=model.client_id,
        counselor_id=model.counselor_id,
        appointment_id=model.appointment_id,
        amount=model.amount,
        currency=model.currency,
        payment_method=model.payment_method,
        status=model.status,
        transaction_id=model.transaction_id,
        created_at=model.created_at,
        refund_amount=model.refund_amount,
        refund_reason=model.refund_reason,
    )


def entity_to_model(entity: Payment) -> PaymentModel:
    return PaymentModel(
        id=entity.id,
        client_id=entity.client_id,
        counselor_id=entity.counselor_id,
        appointment_id=entity.appointment_id,
        amount=entity.amount,
        currency=entity.currency,
        payment_method=entity.payment_method,
        status=entity.status,
        transaction_id=entity.transaction_id,
        created_at=entity.created_at,
        refund_amount=entity.refund_amount,
        refund_reason=entity.refund_reason,
    )
