"""Request throttling with slowapi.

Two shared buckets, each one minute wide:
- ``auth``: register and login, keyed by client IP (brute force protection)
- ``api``: every authenticated route, keyed by the token's user
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.config import settings
from app.exceptions import AuthError
from app.security import decode_token

logger = logging.getLogger(__name__)


def get_client_key(request: Request) -> str:
    """Rate limit key: the token's user when one is presented, otherwise the client IP."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return f"ip:{get_remote_address(request)}"
    try:
        payload = decode_token(token)
    except AuthError:
        # unusable tokens are throttled by IP; the route rejects them
        return f"ip:{get_remote_address(request)}"
    return f"user:{payload['sub']}"


limiter = Limiter(
    key_func=get_client_key,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


def auth_rate_limit():
    """Limit for the public auth endpoints (5/min by default)."""
    return limiter.shared_limit(settings.RATE_LIMIT_AUTH, scope="auth", key_func=get_remote_address)


def api_rate_limit():
    """Limit shared by every authenticated endpoint (60/min by default)."""
    return limiter.shared_limit(settings.RATE_LIMIT_API, scope="api")


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Render the 429 in the standard error envelope."""
    logger.warning("Rate limit exceeded for %s on %s: %s", get_client_key(request), request.url.path, exc.detail)
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests. Please try again later.",
            "error_code": "TOO_MANY_REQUESTS",
            "data": {"limit": str(exc.detail)},
        },
        headers={"Retry-After": "60"},
    )
