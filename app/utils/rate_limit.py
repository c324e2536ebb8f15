"""
Rate limiting for console endpoints.
Uses slowapi to slow down password guessing and bulk uploads.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request


def get_client_identifier(request: Request) -> str:
    """
    Identify the client for rate limiting.
    Uses the first X-Forwarded-For hop when behind a proxy.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri="memory://",
)

RATE_LIMITS = {
    "login": "5/minute",
    "upload": "20/hour",
}
