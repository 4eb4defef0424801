from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Verified credential payload. Only the subject is trusted."""

    subject_id: int
