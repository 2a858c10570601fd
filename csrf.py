"""
Double-submit cookie CSRF check.

The cash card API is stateless and is not driven by browser forms, so the
listener is started with this check disabled (``CSRF_PROTECTION_ENABLED``).
Any endpoint added for browser clients has to revisit that choice.
"""

import logging
import secrets

from starlette.middleware.base import BaseHTTPMiddleware

from errors import AuthorizationFailure

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "x-csrf-token"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


def _new_token() -> str:
    return secrets.token_urlsafe(32)


def set_csrf_cookie(response, token: str, *, secure: bool) -> None:
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        max_age=7 * 24 * 60 * 60,
        httponly=False,
        secure=secure,
        samesite="strict",
        path="/",
    )


def csrf_token_valid(cookie_token: str, header_token: str) -> bool:
    cookie_token = (cookie_token or "").strip()
    header_token = (header_token or "").strip()
    if not cookie_token or not header_token:
        return False
    return secrets.compare_digest(cookie_token, header_token)


class CSRFMiddleware(BaseHTTPMiddleware):
    """Check unsafe methods and hand out a token to clients that lack one."""

    async def dispatch(self, request, call_next):
        cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
        if request.method not in SAFE_METHODS:
            header_token = request.headers.get(CSRF_HEADER_NAME)
            if not csrf_token_valid(cookie_token, header_token):
                logger.warning(f"⛔ CSRF token missing or invalid on {request.method} {request.url.path}")
                return AuthorizationFailure("CSRF token missing or invalid").to_response()
        response = await call_next(request)
        if not cookie_token or len(cookie_token) < 16:
            set_csrf_cookie(response, _new_token(), secure=request.url.scheme == "https")
        return response
