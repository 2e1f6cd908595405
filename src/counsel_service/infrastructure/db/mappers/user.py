from __future__ import annotations

from counsel_service.domain.entities.user import User
from counsel_service.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        first_name=model.first_name,
        last_name=model.last_name,
        email=model.email,
        phone=model.phone,
        user_type=model.user_type,
        avatar=model.avatar or "",
        created_at=model.created_at,
        license_number=model.license_number,
        specialization=model.specialization,
        experience=model.experience,
        bio=model.bio,
        hourly_rate=model.hourly_rate,
        availability=list(model.availability or []),
        rating=model.rating,
        total_sessions=model.total_sessions,
        is_active=model.is_active,
    )


def entity_to_model(entity: User) -> UserModel:
    return UserModel(
        first_name=entity.first_name,
        last_name=entity.last_name,
        email=entity.email.lower(),
        phone=entity.phone,
        user_type=entity.user_type,
        avatar=entity.avatar,
        created_at=entity.created_at,
        license_number=entity.license_number,
        specialization=entity.specialization,
        experience=entity.experience,
        bio=entity.bio,
        hourly_rate=entity.hourly_rate,
        availability=list(entity.availability),
        rating=entity.rating,
        total_sessions=entity.total_sessions,
        is_active=entity.is_active,
    )
