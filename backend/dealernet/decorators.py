# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import current_app, request, g

from .permissions import validate_permission_code
from .errors import Unauthenticated
from .responses import error_response, fail
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'permissions')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.role: Canonical role of the caller
    - g.permissions: Capability codes of that role
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return error_response(Unauthenticated("Authentication required"))

        context = session_service.validate_session(token)
        if not context:
            return error_response(Unauthenticated("Invalid or expired token"))

        g.current_user = context.user
        g.role = context.role
        g.permissions = context.permissions
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def _deny(required: list[str]):
    current_app.logger.warning(
        "Permission denied: user_id=%s role=%s required=%s path=%s",
        g.current_user.id,
        g.role,
        ",".join(required),
        request.path,
    )
    if len(required) == 1:
        return fail("Permission denied", 403, required_permission=required[0])
    return fail("Permission denied", 403, required_permissions=required)


def require_permission(permission_code: str):
    """Require a specific permission. Must be stacked under @require_auth."""
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code: {permission_code}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return fail("Authentication required", 401)

            if permission_code not in g.permissions:
                return _deny([permission_code])

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """Require any of the specified permissions."""
    unknown = [c for c in permission_codes if not validate_permission_code(c)]
    if unknown:
        raise ValueError(f"Unknown permission codes: {', '.join(unknown)}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return fail("Authentication required", 401)

            if not any(code in g.permissions for code in permission_codes):
                return _deny(list(permission_codes))

            return f(*args, **kwargs)

        return decorated_function
    return decorator
