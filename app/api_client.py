"""
Shared HTTP client for the remote CMS API.
One connection-pooled httpx.AsyncClient per process, configured from settings.
"""
from typing import Optional
from urllib.parse import urlparse
import logging

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

_client: Optional[httpx.AsyncClient] = None


def create_http_client(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient bound to the CMS API base URL.

    Args:
        base_url: Override for settings.CMS_API_URL
        transport: Optional transport (used to plug in a mock API)

    Returns:
        httpx.AsyncClient: Client with base URL, timeout and JSON accept header set
    """
    return httpx.AsyncClient(
        base_url=base_url or settings.CMS_API_URL,
        timeout=settings.CMS_API_TIMEOUT,
        headers={"Accept": "application/json"},
        transport=transport,
    )


def _describe_base_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"Invalid CMS_API_URL: {url!r} (expected http:// or https:// URL)")
    return f"{parsed.scheme}://{parsed.hostname}:{parsed.port or ('443' if parsed.scheme == 'https' else '80')}{parsed.path}"


async def init_client() -> httpx.AsyncClient:
    """
    Open the shared client.
    Used by the application lifespan; safe to call more than once.
    """
    global _client
    if _client is not None:
        return _client

    logger.info(f"Connecting console to CMS API at {_describe_base_url(settings.CMS_API_URL)}")
    _client = create_http_client()
    return _client


async def close_client():
    """Close the shared client and its connection pool."""
    global _client
    if _client is None:
        return
    await _client.aclose()
    _client = None
    logger.info("CMS API client closed")


async def get_http_client() -> httpx.AsyncClient:
    """
    FastAPI dependency returning the shared CMS API client.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(http: httpx.AsyncClient = Depends(get_http_client)):
            ...
    """
    if _client is None:
        return await init_client()
    return _client
