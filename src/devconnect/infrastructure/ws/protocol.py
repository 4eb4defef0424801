"""WebSocket frame envelope: ``{"type": ..., "data": ...}`` in both directions."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Larger inbound frames are rejected before JSON parsing.
MAX_FRAME_BYTES = 64 * 1024


class FrameTooLargeError(ValueError):
    pass


class WsInbound(BaseModel):
    """Client → Server. ``data`` is validated per command, not here."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1, max_length=64)
    data: Any = None

    @classmethod
    def parse_frame(cls, raw: str) -> WsInbound:
        if len(raw.encode()) > MAX_FRAME_BYTES:
            raise FrameTooLargeError(f"Frame exceeds {MAX_FRAME_BYTES} bytes")
        return cls.model_validate_json(raw)


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str
    data: Any = None

    def encode(self) -> str:
        return self.model_dump_json()
