from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """UTC wall clock at millisecond resolution.

    Browser clients order chat and comments by ``sentAt`` parsed into JS dates, so
    stored timestamps never carry more precision than the wire can express.
    """

    def now(self) -> datetime:
        now = datetime.now(timezone.utc)
        return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


DEFAULT_CLOCK: Clock = SystemClock()
