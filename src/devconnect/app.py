from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from devconnect.api.deps import build_verifier
from devconnect.api.middleware.correlation_id import CorrelationIdMiddleware
from devconnect.api.v1.routers import admin, comments, health, messages, posts, profile, ws
from devconnect.application.exceptions import (
    AppError,
    AuthError,
    AuthorizationError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    PrincipalBannedError,
    ValidationError,
)
from devconnect.application.ports.auth import TokenVerifier
from devconnect.config import settings
from devconnect.infrastructure.db.session import engine, open_uow
from devconnect.realtime.hub import RealtimeHub, UoWFactory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    logger.info("Realtime hub ready")
    yield

    await app.state.hub.shutdown()
    await engine.dispose()
    logger.info("Database engine disposed")


def create_app(
    *,
    uow_factory: UoWFactory | None = None,
    verifier: TokenVerifier | None = None,
) -> FastAPI:
    app = FastAPI(
        title="DevConnect Realtime Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.verifier = verifier or build_verifier()
    app.state.hub = RealtimeHub(
        uow_factory=uow_factory or open_uow,
        verifier=app.state.verifier,
        history_limit=settings.CHAT_HISTORY_LIMIT,
        queue_size=settings.WS_OUTBOUND_QUEUE_SIZE,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(posts.router)
    app.include_router(comments.router)
    app.include_router(messages.router)
    app.include_router(profile.router)
    app.include_router(admin.router)
    app.include_router(ws.router)

    return app


def _error(status_code: int, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": exc.detail, "code": exc.code})


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PrincipalBannedError)
    async def _banned(_req: Request, exc: PrincipalBannedError) -> JSONResponse:
        return _error(403, exc)

    @app.exception_handler(AuthError)
    async def _unauthorized(_req: Request, exc: AuthError) -> JSONResponse:
        return _error(401, exc)

    @app.exception_handler(AuthorizationError)
    async def _forbidden(_req: Request, exc: AuthorizationError) -> JSONResponse:
        return _error(403, exc)

    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, exc)

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return _error(409, exc)

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return _error(422, exc)

    @app.exception_handler(SQLAlchemyError)
    @app.exception_handler(OSError)
    async def _unavailable(req: Request, exc: Exception) -> JSONResponse:
        logger.exception("Store failure on %s %s", req.method, req.url.path, exc_info=exc)
        return _error(503, InfrastructureError("Internal error"))
