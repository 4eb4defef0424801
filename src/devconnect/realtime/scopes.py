"""Recipient-selection rules for outbound events."""
from __future__ import annotations

from dataclasses import dataclass

from devconnect.domain.value_objects.ids import ConnectionId, RoomId

GLOBAL_ROOM = RoomId("global")
FEED_ROOM = RoomId("feed")


@dataclass(frozen=True, slots=True)
class ToRoom:
    room: RoomId


@dataclass(frozen=True, slots=True)
class ToAll:
    """Every authenticated connection, i.e. the members of the global room."""

    @property
    def room(self) -> RoomId:
        return GLOBAL_ROOM


@dataclass(frozen=True, slots=True)
class ToPrincipals:
    """All live connections of each listed principal (multi-device)."""

    principal_ids: frozenset[int]

    @classmethod
    def of(cls, *principal_ids: int) -> ToPrincipals:
        return cls(frozenset(principal_ids))


@dataclass(frozen=True, slots=True)
class ToConnection:
    connection_id: ConnectionId


@dataclass(frozen=True, slots=True)
class ExceptSender:
    """The global room minus the originating connection."""

    connection_id: ConnectionId


Scope = ToAll | ToRoom | ToPrincipals | ToConnection | ExceptSender
