# Overview: Request decorators for API routes (session auth, admin role, rate limiting).

from functools import wraps
from flask import request, g, current_app

from .services import session_service
from .services.rate_limit_service import client_address
from .validation import AuthenticationError, PermissionDeniedError, RateLimitedError


def _is_authenticated() -> bool:
    return getattr(g, 'current_user', None) is not None


def require_auth(f):
    """
    Require a valid session cookie.

    Sets g.current_user to the freshly loaded User.

    SECURITY: Returns 401 if:
    - No session cookie
    - Token fails signature or expiry checks
    - The user in the token no longer exists
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = session_service.resolve_session(request.cookies)

        if user is None:
            raise AuthenticationError("Unauthorized")

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require the authenticated user to have the ADMIN role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            raise AuthenticationError("Unauthorized")
        if not g.current_user.is_admin:
            current_app.logger.warning(
                "Forbidden: user_id=%s is not ADMIN for %s %s",
                g.current_user.id, request.method, request.path,
            )
            raise PermissionDeniedError("Forbidden")
        return f(*args, **kwargs)
    return decorated_function


def apply_rate_limit(prefix: str, limit_config_key: str) -> None:
    """
    Count this request against "<prefix>:<client address>".

    The per-window maximum is read from app config (limit_config_key) and the
    window from RATE_LIMIT_WINDOW_SECONDS.

    Raises RateLimitedError (429 + Retry-After) once the limit is exceeded.
    """
    limiter = current_app.extensions["rate_limiter"]
    key = f"{prefix}:{client_address(request.headers, request.remote_addr)}"
    result = limiter.check(
        key,
        current_app.config["RATE_LIMIT_WINDOW_SECONDS"],
        current_app.config[limit_config_key],
    )
    if not result.allowed:
        current_app.logger.warning("Rate limit exceeded for %s (retry after %ss)", key, result.retry_after_seconds)
        raise RateLimitedError("Too many requests", retry_after=result.retry_after_seconds)


def rate_limit(prefix: str, limit_config_key: str):
    """Decorator form of apply_rate_limit, checked before the view runs."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            apply_rate_limit(prefix, limit_config_key)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
