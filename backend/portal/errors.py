# Overview: Error taxonomy shared by services, decorators and routes.

"""
Portal error types.

Every error carries a stable machine-checkable ``kind`` and the HTTP status the
API answers with. Services raise these; the application error handler renders
them as ``{"error": kind, "message": ...}``.
"""


class PortalError(Exception):
    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str | None = None, **details):
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidCredentialsError(PortalError):
    kind = "InvalidCredentials"
    status_code = 401


class UnauthorizedError(PortalError):
    """Missing, invalid or expired session token."""
    kind = "Unauthorized"
    status_code = 401


class TokenExpiredError(UnauthorizedError):
    kind = "TokenExpired"


class TokenInvalidError(UnauthorizedError):
    kind = "TokenInvalid"


class UserNotFoundError(UnauthorizedError):
    kind = "UserNotFound"


class UserInactiveError(UnauthorizedError):
    kind = "UserInactive"


class ForbiddenError(PortalError):
    kind = "Forbidden"
    status_code = 403


class AuthorizationDataIncompleteError(ForbiddenError):
    """The user's role or permission set could not be loaded."""
    kind = "AuthorizationDataIncomplete"


class NotFoundError(PortalError):
    kind = "NotFound"
    status_code = 404


class ConflictError(PortalError):
    kind = "Conflict"
    status_code = 409


class ValidationError(PortalError):
    kind = "ValidationError"
    status_code = 400


class ConfigError(PortalError):
    """Fatal configuration problem detected at startup."""
    kind = "ConfigError"
    status_code = 500


class InternalError(PortalError):
    kind = "InternalError"
    status_code = 500
