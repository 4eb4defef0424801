"""Scope resolution and per-connection delivery."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from devconnect.domain.value_objects.ids import RoomId
from devconnect.infrastructure.ws.protocol import WsOutbound
from devconnect.realtime.registry import Connection, ConnectionRegistry
from devconnect.realtime.scopes import (
    GLOBAL_ROOM,
    ExceptSender,
    Scope,
    ToAll,
    ToConnection,
    ToPrincipals,
    ToRoom,
)

logger = logging.getLogger(__name__)

# Close code sent to a connection whose outbound queue overflowed.
SLOW_CONSUMER_CLOSE_CODE = 1013


@dataclass(frozen=True, slots=True)
class Publish:
    event_type: str
    data: Any
    scope: Scope


@dataclass(frozen=True, slots=True)
class JoinRoom:
    room: RoomId


@dataclass(frozen=True, slots=True)
class LeaveRoom:
    room: RoomId


Effect = Publish | JoinRoom | LeaveRoom


class FanoutEngine:
    """Pushes serialized events to the live connections a scope selects.

    ``publish`` never awaits: the recipient set is a snapshot taken at call time
    and each connection gets the event on its own queue. A connection that
    cannot take the event is handed to ``on_dead`` and skipped.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        on_dead: Callable[[Connection, int], None],
    ) -> None:
        self._registry = registry
        self._on_dead = on_dead

    def resolve(self, scope: Scope) -> list[Connection]:
        if isinstance(scope, ToAll):
            return self._registry.members(GLOBAL_ROOM)
        if isinstance(scope, ToRoom):
            return self._registry.members(scope.room)
        if isinstance(scope, ExceptSender):
            return [
                c for c in self._registry.members(GLOBAL_ROOM) if c.id != scope.connection_id
            ]
        if isinstance(scope, ToConnection):
            connection = self._registry.get(scope.connection_id)
            return [connection] if connection is not None else []
        if isinstance(scope, ToPrincipals):
            targets: list[Connection] = []
            for principal_id in scope.principal_ids:
                for cid in self._registry.connections_for(principal_id):
                    connection = self._registry.get(cid)
                    if connection is not None:
                        targets.append(connection)
            return targets
        raise TypeError(f"Unknown scope: {scope!r}")

    def publish(self, event_type: str, data: Any, scope: Scope) -> int:
        """Returns how many connections the event was queued for."""
        raw = WsOutbound(type=event_type, data=data).encode()
        delivered = 0
        for connection in self.resolve(scope):
            if connection.enqueue(raw):
                delivered += 1
            elif connection.is_open:
                logger.warning(
                    "Dropping %s: outbound queue full (event=%s)", connection.id, event_type,
                )
                self._on_dead(connection, SLOW_CONSUMER_CLOSE_CODE)
        return delivered

    def send(self, connection: Connection, event_type: str, data: Any) -> bool:
        """Direct write to a connection that may not be admitted yet (handshake errors)."""
        return connection.enqueue(WsOutbound(type=event_type, data=data).encode())
