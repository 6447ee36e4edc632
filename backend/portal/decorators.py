# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .errors import ForbiddenError, UnauthorizedError
from .services import access_service, session_service


def current_user():
    """The ResolvedUser for this request, or None outside @require_auth."""
    return getattr(g, "current_user", None)


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to a ResolvedUser loaded fresh from the database.

    SECURITY: raises 401-class errors for a missing header, an invalid or
    expired token, a deleted user or a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            raise UnauthorizedError("Authentication required")

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            raise UnauthorizedError("Authentication required")

        g.current_user = session_service.resolve_session(token)
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_key: str):
    """
    Require a specific permission. Must be stacked under @require_auth.

    The super-admin role always passes.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = current_user()
            if user is None:
                raise UnauthorizedError("Authentication required")

            if not access_service.has_permission(user, permission_key):
                current_app.logger.warning(
                    "Permission denied: user=%s permission=%s path=%s",
                    user.username, permission_key, request.path,
                )
                raise ForbiddenError(f"Missing required permission: {permission_key}")

            return f(*args, **kwargs)

        return decorated_function

    return decorator
