from __future__ import annotations

import logging

import jwt
from jwt import PyJWKClient

from devconnect.application.dto.claims import TokenClaims
from devconnect.application.exceptions import InvalidCredentialError
from devconnect.infrastructure.auth.claims import claims_from_payload

logger = logging.getLogger(__name__)


class JWKSVerifier:
    """Verify JWTs using a remote JWKS endpoint."""

    def __init__(self, jwks_url: str) -> None:
        self._jwks_url = jwks_url
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> TokenClaims:
        try:
            signing_key = self._jwk_client.get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256", "ES256"],
            )
        except jwt.PyJWTError as exc:
            logger.debug("JWKS verification failed against %s", self._jwks_url)
            raise InvalidCredentialError(str(exc)) from exc
        return claims_from_payload(payload)
