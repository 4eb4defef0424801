"""Principal resolution: credential verification plus a fresh account read."""
from __future__ import annotations

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import (
    BannedError,
    InvalidCredentialError,
    PrincipalBannedError,
    PrincipalNotFoundError,
)
from devconnect.application.ports.auth import TokenVerifier
from devconnect.application.uow import UnitOfWork


async def resolve(
    credential: str | None,
    verifier: TokenVerifier,
    uow: UnitOfWork,
) -> Principal:
    """Turn a bearer credential into a Principal.

    Raises InvalidCredentialError, PrincipalNotFoundError or PrincipalBannedError.
    Read-only.
    """
    if not credential:
        raise InvalidCredentialError("No token provided")

    claims = await verifier.verify(credential)
    user = await uow.users.get_by_id(claims.subject_id)
    if user is None:
        raise PrincipalNotFoundError("Account no longer exists")
    if user.is_banned:
        raise PrincipalBannedError("Account is banned")
    return Principal.from_user(user)


async def refresh(principal_id: int, uow: UnitOfWork) -> Principal:
    """Re-read an already-authenticated principal before a privileged step."""
    user = await uow.users.get_by_id(principal_id)
    if user is None:
        raise PrincipalNotFoundError("Account no longer exists")
    if user.is_banned:
        raise BannedError("You have been banned")
    return Principal.from_user(user)
