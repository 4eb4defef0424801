from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    code = "error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class AuthError(AppError):
    """Fatal to a connection attempt."""

    code = "auth_failed"


class InvalidCredentialError(AuthError):
    code = "invalid_credential"


class PrincipalNotFoundError(AuthError):
    code = "principal_not_found"


class PrincipalBannedError(AuthError):
    code = "banned"


class AuthorizationError(AppError):
    """Rejects a single command; the session stays open."""

    code = "forbidden"


class ForbiddenError(AuthorizationError):
    pass


class MutedError(AuthorizationError):
    code = "muted"


class BannedError(AuthorizationError):
    """Raised on a live session whose principal has been banned since the handshake."""

    code = "banned"


class ValidationError(AppError):
    code = "invalid_data"


class ConflictError(AppError):
    code = "conflict"


class AlreadyLikedError(ConflictError):
    code = "already_liked"


class NotLikedError(ConflictError):
    code = "not_liked"


class NotFoundError(AppError):
    code = "not_found"


class InfrastructureError(AppError):
    code = "internal_error"
