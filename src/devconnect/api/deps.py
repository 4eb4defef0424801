"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import AuthError, PrincipalBannedError
from devconnect.application.ports.auth import TokenVerifier
from devconnect.application.uow import UnitOfWork
from devconnect.config import settings
from devconnect.infrastructure.auth.hs256_verifier import HS256Verifier
from devconnect.infrastructure.auth.jwks_verifier import JWKSVerifier
from devconnect.infrastructure.db.session import AsyncSessionLocal
from devconnect.infrastructure.db.uow import SqlAlchemyUoW
from devconnect.realtime.hub import RealtimeHub
from devconnect.services import auth_service

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[UnitOfWork]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


def build_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


def get_hub(request: Request) -> RealtimeHub:
    return request.app.state.hub


HubDep = Annotated[RealtimeHub, Depends(get_hub)]


def get_verifier(request: Request) -> TokenVerifier:
    return request.app.state.verifier


async def get_optional_principal(
    request: Request,
    uow: UoWDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Principal | None:
    if credentials is None:
        return None
    try:
        return await auth_service.resolve(credentials.credentials, get_verifier(request), uow)
    except PrincipalBannedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.detail) from exc
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.detail or "Invalid token",
        ) from exc


OptionalPrincipal = Annotated[Principal | None, Depends(get_optional_principal)]


async def get_current_principal(principal: OptionalPrincipal) -> Principal:
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
        )
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def get_current_admin(principal: CurrentPrincipal) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal


CurrentAdmin = Annotated[Principal, Depends(get_current_admin)]
