"""In-process registry of live WebSocket connections."""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Protocol

from devconnect.application.dto.principal import Principal
from devconnect.domain.value_objects.enums import LifecycleState
from devconnect.domain.value_objects.ids import ConnectionId, RoomId
from devconnect.realtime.scopes import GLOBAL_ROOM

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """The slice of ``starlette.websockets.WebSocket`` the realtime layer uses."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


@dataclass(frozen=True, slots=True)
class _Close:
    code: int
    reason: str


@dataclass(frozen=True, slots=True)
class PresenceEntry:
    principal_id: int
    username: str


class Connection:
    """One transport session with its own FIFO outbound queue.

    A single writer task drains the queue, so events reach the socket in the
    order they were published and a slow socket only delays itself.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        connection_id: str | None = None,
        queue_size: int = 256,
    ) -> None:
        self.id = ConnectionId(connection_id or uuid.uuid4().hex)
        self.transport = transport
        self.principal: Principal | None = None
        self.state = LifecycleState.CONNECTING
        self.rooms: set[RoomId] = set()
        self._outbound: asyncio.Queue[str | _Close] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._closing = False

    def __repr__(self) -> str:
        pid = self.principal.id if self.principal else None
        return f"<Connection {self.id} principal={pid} state={self.state}>"

    @property
    def is_open(self) -> bool:
        return self.state != LifecycleState.CLOSED and not self._closing

    def mark_authenticated(self, principal: Principal) -> None:
        if self.state != LifecycleState.CONNECTING:
            raise RuntimeError(f"Connection {self.id} cannot authenticate from {self.state}")
        self.principal = principal
        self.state = LifecycleState.AUTHENTICATED

    def start_writer(self, on_failure: Callable[[Connection], None]) -> None:
        self._writer = asyncio.create_task(
            self._write_loop(on_failure), name=f"ws-writer-{self.id}",
        )

    def enqueue(self, raw: str) -> bool:
        """Queue a serialized event without waiting. False means the queue is full or closing."""
        if self._closing:
            return False
        try:
            self._outbound.put_nowait(raw)
        except asyncio.QueueFull:
            return False
        return True

    def close(self, code: int = 1000, reason: str = "") -> None:
        """Flush what is already queued, then close the transport."""
        if self._closing:
            return
        self._closing = True
        self.state = LifecycleState.CLOSED
        if self._outbound.full():
            self._discard_pending()
        self._outbound.put_nowait(_Close(code, reason))

    def _discard_pending(self) -> None:
        while not self._outbound.empty():
            self._outbound.get_nowait()
            self._outbound.task_done()

    async def drain(self) -> None:
        """Wait until everything queued so far has been written (or dropped)."""
        if self._writer is None or self._writer.done():
            return
        joined = asyncio.ensure_future(self._outbound.join())
        try:
            await asyncio.wait({joined, self._writer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            joined.cancel()

    async def wait_closed(self) -> None:
        if self._writer is not None:
            await asyncio.wait({self._writer})

    async def finish(self, timeout: float = 5.0) -> None:
        """Let a requested close reach the socket, then stop the writer."""
        if self._closing and self._writer is not None and not self._writer.done():
            await asyncio.wait({self._writer}, timeout=timeout)
        await self.stop()

    async def stop(self) -> None:
        self.state = LifecycleState.CLOSED
        self._closing = True
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass

    async def _write_loop(self, on_failure: Callable[[Connection], None]) -> None:
        while True:
            item = await self._outbound.get()
            try:
                if isinstance(item, _Close):
                    await self.transport.close(code=item.code, reason=item.reason)
                    self._discard_pending()
                    return
                await self.transport.send_text(item)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.debug("WS write failed for %s", self.id, exc_info=True)
                self._closing = True
                self.state = LifecycleState.CLOSED
                self._discard_pending()
                on_failure(self)
                return
            finally:
                self._outbound.task_done()


class ConnectionRegistry:
    """Tracks authenticated connections per principal and per room.

    Every method is synchronous: between two awaits of the caller a mutation
    is applied completely, so readers never see the id index and the room sets
    disagree.
    """

    def __init__(self) -> None:
        self._connections: dict[ConnectionId, Connection] = {}
        self._by_principal: dict[int, set[ConnectionId]] = {}
        self._rooms: dict[RoomId, set[ConnectionId]] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def admit(self, connection: Connection, principal: Principal) -> None:
        if connection.id in self._connections:
            raise RuntimeError(f"Connection {connection.id} already admitted")
        connection.mark_authenticated(principal)
        self._connections[connection.id] = connection
        self._by_principal.setdefault(principal.id, set()).add(connection.id)
        self._join(connection, GLOBAL_ROOM)
        logger.debug(
            "WS admitted: %s principal=%s (total=%d)", connection.id, principal.id, len(self),
        )

    def remove(self, connection_id: ConnectionId) -> Connection | None:
        """Idempotent. Returns the connection if it was still registered."""
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None
        for room in connection.rooms:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    del self._rooms[room]
        connection.rooms.clear()
        if connection.principal is not None:
            ids = self._by_principal.get(connection.principal.id)
            if ids is not None:
                ids.discard(connection_id)
                if not ids:
                    del self._by_principal[connection.principal.id]
        connection.state = LifecycleState.CLOSED
        logger.debug("WS removed: %s (total=%d)", connection_id, len(self))
        return connection

    def get(self, connection_id: ConnectionId) -> Connection | None:
        return self._connections.get(connection_id)

    def join(self, connection_id: ConnectionId, room: RoomId) -> bool:
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        self._join(connection, room)
        return True

    def leave(self, connection_id: ConnectionId, room: RoomId) -> None:
        connection = self._connections.get(connection_id)
        if connection is None or room == GLOBAL_ROOM:
            return
        connection.rooms.discard(room)
        members = self._rooms.get(room)
        if members is not None:
            members.discard(connection_id)
            if not members:
                del self._rooms[room]

    def _join(self, connection: Connection, room: RoomId) -> None:
        connection.rooms.add(room)
        self._rooms.setdefault(room, set()).add(connection.id)

    def connections_for(self, principal_id: int) -> set[ConnectionId]:
        return set(self._by_principal.get(principal_id, ()))

    def members(self, room: RoomId) -> list[Connection]:
        """Snapshot of a room's connections."""
        return [self._connections[cid] for cid in self._rooms.get(room, ())]

    def all(self) -> list[Connection]:
        return list(self._connections.values())

    def list_presence(self) -> list[PresenceEntry]:
        """Distinct principals in the order they first came online."""
        entries: list[PresenceEntry] = []
        for principal_id, ids in self._by_principal.items():
            connection = self._connections[next(iter(ids))]
            assert connection.principal is not None
            entries.append(PresenceEntry(principal_id, connection.principal.username))
        return entries
