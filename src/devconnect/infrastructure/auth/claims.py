from __future__ import annotations

from typing import Any

from devconnect.application.dto.claims import TokenClaims
from devconnect.application.exceptions import InvalidCredentialError


def claims_from_payload(payload: dict[str, Any]) -> TokenClaims:
    """Extract the subject; legacy tokens carry it as ``userId``.

    Role and ban claims are not read here, the store is authoritative for both.
    """
    raw = payload.get("sub", payload.get("userId"))
    try:
        return TokenClaims(subject_id=int(raw))
    except (TypeError, ValueError) as exc:
        raise InvalidCredentialError("Token has no valid subject") from exc
