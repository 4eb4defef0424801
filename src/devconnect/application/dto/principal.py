from __future__ import annotations

from dataclasses import dataclass

from devconnect.domain.entities.user import User
from devconnect.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity, always built from a fresh store read."""

    id: int
    username: str
    role: Role = Role.USER
    banned: bool = False
    muted: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: User) -> Principal:
        role = Role(user.role) if user.role in Role.__members__.values() else Role.USER
        return cls(
            id=user.id,
            username=user.username,
            role=role,
            banned=user.is_banned,
            muted=user.is_muted,
        )
