"""Composition of registry, fanout and the store for the realtime layer.

One ``RealtimeHub`` lives on ``app.state.hub``; the WebSocket endpoint and the
HTTP routers publish through it.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Hashable, Iterable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, AsyncIterator, Callable

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import AppError
from devconnect.application.ports.auth import TokenVerifier
from devconnect.application.uow import UnitOfWork
from devconnect.realtime import events
from devconnect.realtime.events import EventType
from devconnect.realtime.fanout import Effect, FanoutEngine, JoinRoom, LeaveRoom, Publish
from devconnect.realtime.registry import Connection, ConnectionRegistry, Transport
from devconnect.realtime.scopes import Scope, ToAll, ToConnection
from devconnect.services import auth_service, chat_service

logger = logging.getLogger(__name__)

UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]

CLOSE_AUTH_FAILED = 4001
CLOSE_BANNED = 4003
CLOSE_HANDSHAKE_TIMEOUT = 4008
CLOSE_GOING_AWAY = 1001


class KeyedSequencer:
    """Per-key async mutex; idle keys are dropped.

    Held across "commit, then enqueue" so that broadcasts for one key leave in
    commit order.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable | None) -> AsyncIterator[None]:
        if key is None:
            yield
            return
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if not self._waiters[key]:
                del self._waiters[key]
                del self._locks[key]


class RealtimeHub:
    def __init__(
        self,
        *,
        uow_factory: UoWFactory,
        verifier: TokenVerifier,
        history_limit: int = 100,
        queue_size: int = 256,
    ) -> None:
        self.registry = ConnectionRegistry()
        self.fanout = FanoutEngine(self.registry, on_dead=self.disconnect)
        self.sequencer = KeyedSequencer()
        self.uow_factory = uow_factory
        self.history_limit = history_limit
        self._verifier = verifier
        self._queue_size = queue_size

    def open_connection(self, transport: Transport) -> Connection:
        connection = Connection(transport, queue_size=self._queue_size)
        connection.start_writer(on_failure=self.disconnect)
        return connection

    async def authenticate(self, credential: str | None) -> Principal:
        async with self.uow_factory() as uow:
            return await auth_service.resolve(credential, self._verifier, uow)

    async def refresh(self, connection: Connection) -> Principal:
        """Re-read the connection's principal so ban/mute/role changes apply live."""
        assert connection.principal is not None
        async with self.uow_factory() as uow:
            principal = await auth_service.refresh(connection.principal.id, uow)
        connection.principal = principal
        return principal

    async def admit(self, connection: Connection, principal: Principal) -> None:
        """Register the connection, replay recent chat, announce presence.

        The connection is admitted before the history read, so a message sent
        in between may arrive both live and in the replay; clients de-duplicate
        by id.
        """
        self.registry.admit(connection, principal)
        logger.info("WS connected: %s principal=%s", connection.id, principal.id)
        self.publish_presence()
        await self.replay_history(connection)

    async def replay_history(self, connection: Connection) -> None:
        async with self.uow_factory() as uow:
            history = await chat_service.recent_history(self.history_limit, uow)
        self.publish(EventType.CHAT_HISTORY, events.chat_history(history), ToConnection(connection.id))

    def publish(self, event_type: str, data: Any, scope: Scope) -> int:
        return self.fanout.publish(event_type, data, scope)

    def publish_presence(self) -> None:
        self.publish(EventType.ACTIVE_USERS, events.active_users(self.registry.list_presence()), ToAll())

    def apply(self, connection: Connection, effects: Iterable[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, Publish):
                self.publish(effect.event_type, effect.data, effect.scope)
            elif isinstance(effect, JoinRoom):
                self.registry.join(connection.id, effect.room)
            elif isinstance(effect, LeaveRoom):
                self.registry.leave(connection.id, effect.room)

    def send_error(self, connection: Connection, exc: AppError) -> None:
        self.fanout.send(connection, EventType.ERROR, events.error(exc))

    def disconnect(self, connection: Connection, code: int | None = None, reason: str = "") -> None:
        """Idempotent. Removes the connection and, if a code is given, closes it."""
        removed = self.registry.remove(connection.id)
        if code is not None:
            connection.close(code, reason)
        if removed is not None:
            logger.info("WS disconnected: %s", connection.id)
            self.publish_presence()

    def disconnect_principal(self, principal_id: int, exc: AppError, code: int = CLOSE_BANNED) -> int:
        """Close every live connection of a principal, telling each why."""
        closed = 0
        for cid in self.registry.connections_for(principal_id):
            connection = self.registry.get(cid)
            if connection is None:
                continue
            self.send_error(connection, exc)
            self.disconnect(connection, code, exc.detail)
            closed += 1
        if closed:
            logger.info("Closed %d connection(s) of principal %s", closed, principal_id)
        return closed

    async def drain(self) -> None:
        await asyncio.gather(*(c.drain() for c in self.registry.all()))

    async def shutdown(self, timeout: float = 5.0) -> None:
        connections = self.registry.all()
        for connection in connections:
            self.registry.remove(connection.id)
            connection.close(CLOSE_GOING_AWAY, "Server shutting down")
        if not connections:
            return
        await asyncio.gather(*(c.finish(timeout) for c in connections))
        logger.info("Closed %d connection(s) on shutdown", len(connections))
