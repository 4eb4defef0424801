from __future__ import annotations

from devconnect.domain.entities.user import User
from devconnect.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        username=model.username,
        email=model.email,
        role=model.role,
        is_banned=model.is_banned,
        is_muted=model.is_muted,
        profile_image=model.profile_image,
        created_at=model.created_at,
    )
