from __future__ import annotations

from typing import NewType

ConnectionId = NewType("ConnectionId", str)
PrincipalId = NewType("PrincipalId", int)
RoomId = NewType("RoomId", str)
