from __future__ import annotations

from typing import Protocol

from devconnect.application.dto.claims import TokenClaims


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry. Raise InvalidCredentialError otherwise."""
        ...
