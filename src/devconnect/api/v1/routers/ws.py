from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from devconnect.api.middleware.correlation_id import correlation_id_ctx
from devconnect.config import settings
from devconnect.realtime.events import EventType
from devconnect.realtime.hub import RealtimeHub
from devconnect.realtime.registry import Connection
from devconnect.realtime.scopes import ToConnection
from devconnect.realtime.session import ChatSession

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


def _credential(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


@router.websocket("/ws")
@router.websocket("/ws/chat")
async def ws_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    hub: RealtimeHub = websocket.app.state.hub
    connection = hub.open_connection(websocket)
    token = correlation_id_ctx.set(connection.id)
    session = ChatSession(
        connection, hub, handshake_timeout=settings.WS_HANDSHAKE_TIMEOUT_SECONDS,
    )

    heartbeat_task: asyncio.Task[None] | None = None
    try:
        if not await session.handshake(_credential(websocket)):
            await connection.wait_closed()
            return

        heartbeat_task = asyncio.create_task(
            _heartbeat(hub, connection), name=f"ws-heartbeat-{connection.id}",
        )
        await _read_loop(websocket, session)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", connection.id)
    finally:
        if heartbeat_task is not None:
            heartbeat_task.cancel()
        session.close()
        await connection.finish()
        correlation_id_ctx.reset(token)


async def _heartbeat(hub: RealtimeHub, connection: Connection) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    while connection.is_open:
        await asyncio.sleep(interval)
        hub.publish(EventType.PONG, {}, ToConnection(connection.id))


async def _read_loop(websocket: WebSocket, session: ChatSession) -> None:
    while session.is_open:
        raw = await websocket.receive_text()
        await session.handle_raw(raw)
