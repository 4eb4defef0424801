"""Per-connection lifecycle: Connecting -> Authenticated -> Closed."""
from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from devconnect.application.exceptions import (
    AppError,
    AuthError,
    BannedError,
    InfrastructureError,
    PrincipalBannedError,
    PrincipalNotFoundError,
    ValidationError,
)
from devconnect.domain.value_objects.enums import LifecycleState
from devconnect.infrastructure.ws.protocol import FrameTooLargeError, WsInbound
from devconnect.realtime.commands import COMMANDS, CommandContext
from devconnect.realtime.hub import (
    CLOSE_AUTH_FAILED,
    CLOSE_BANNED,
    CLOSE_HANDSHAKE_TIMEOUT,
    RealtimeHub,
)
from devconnect.realtime.registry import Connection

logger = logging.getLogger(__name__)

CLOSE_INTERNAL_ERROR = 1011


class _PayloadError(ValidationError):
    code = "invalid_payload"


class _UnknownCommandError(ValidationError):
    code = "unknown_type"


class _NotAuthenticatedError(AuthError):
    code = "not_authenticated"


class ChatSession:
    """Drives one connection: a bounded handshake, then commands one at a time.

    Commands from a single connection are handled in arrival order because the
    read loop awaits each ``handle`` before reading the next frame.
    """

    def __init__(self, connection: Connection, hub: RealtimeHub, *, handshake_timeout: float = 10.0) -> None:
        self.connection = connection
        self.hub = hub
        self.handshake_timeout = handshake_timeout

    @property
    def is_open(self) -> bool:
        return self.connection.is_open

    async def handshake(self, credential: str | None) -> bool:
        """Authenticate and admit. On failure the connection is told why and closed."""
        try:
            principal = await asyncio.wait_for(
                self.hub.authenticate(credential), timeout=self.handshake_timeout,
            )
        except TimeoutError:
            logger.info("WS handshake timed out: %s", self.connection.id)
            self.hub.disconnect(self.connection, CLOSE_HANDSHAKE_TIMEOUT, "Handshake timeout")
            return False
        except AuthError as exc:
            logger.info("WS auth failed: %s (%s)", self.connection.id, exc.code)
            self.hub.send_error(self.connection, exc)
            code = CLOSE_BANNED if isinstance(exc, PrincipalBannedError) else CLOSE_AUTH_FAILED
            self.hub.disconnect(self.connection, code, exc.detail)
            return False
        except (SQLAlchemyError, OSError):
            logger.exception("WS handshake failed: %s", self.connection.id)
            self._abort()
            return False

        try:
            await self.hub.admit(self.connection, principal)
        except (SQLAlchemyError, OSError):
            logger.exception("WS admission failed: %s", self.connection.id)
            self._abort()
            return False
        return True

    def _abort(self) -> None:
        self.hub.send_error(self.connection, InfrastructureError("Internal error"))
        self.hub.disconnect(self.connection, CLOSE_INTERNAL_ERROR, "Internal error")

    async def handle_raw(self, raw: str) -> None:
        try:
            command = WsInbound.parse_frame(raw)
        except FrameTooLargeError as exc:
            self.hub.send_error(self.connection, _PayloadError(str(exc)))
            return
        except PydanticValidationError:
            self.hub.send_error(self.connection, _PayloadError("Malformed message"))
            return
        await self.handle(command)

    async def handle(self, command: WsInbound) -> None:
        connection = self.connection
        if connection.state != LifecycleState.AUTHENTICATED:
            self.hub.send_error(connection, _NotAuthenticatedError("Not authenticated"))
            return

        spec = COMMANDS.get(command.type)
        if spec is None:
            self.hub.send_error(connection, _UnknownCommandError(f"Unknown command: {command.type}"))
            return

        try:
            async with self.hub.sequencer.hold(spec.ordering_key(command.data)):
                if spec.refresh_principal:
                    principal = await self.hub.refresh(connection)
                else:
                    assert connection.principal is not None
                    principal = connection.principal
                ctx = CommandContext(
                    connection_id=connection.id,
                    principal=principal,
                    uow_factory=self.hub.uow_factory,
                    history_limit=self.hub.history_limit,
                )
                effects = await spec.handler(ctx, command.data)
                self.hub.apply(connection, effects)
        except (BannedError, PrincipalNotFoundError) as exc:
            logger.info("WS %s closed: %s", connection.id, exc.code)
            self.hub.send_error(connection, exc)
            self.hub.disconnect(connection, CLOSE_BANNED, exc.detail)
        except AppError as exc:
            logger.debug("WS %s command %s rejected: %s", connection.id, command.type, exc.code)
            self.hub.send_error(connection, exc)
        except (SQLAlchemyError, OSError):
            logger.exception("WS %s command %s failed", connection.id, command.type)
            self.hub.send_error(connection, InfrastructureError("Internal error"))

    def close(self) -> None:
        self.hub.disconnect(self.connection)
