import httpx
import logging
from typing import Optional

from bookstore.config import settings

logger = logging.getLogger(__name__)

# Determine whether HTTP/2 is available (requires the 'h2' package)
try:
    import h2  # type: ignore  # noqa: F401
    _HTTP2_AVAILABLE = True
except ImportError:
    _HTTP2_AVAILABLE = False
    logger.debug("HTTP/2 disabled: 'h2' package is not installed.")


def build_async_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create an async HTTP client with pooled connections and bounded timeouts."""
    total = timeout if timeout is not None else settings.gemini_timeout

    limits = httpx.Limits(
        max_keepalive_connections=20,
        max_connections=100,
        keepalive_expiry=30.0,
    )
    client_timeout = httpx.Timeout(
        timeout=total,
        connect=min(5.0, total),
    )
    return httpx.AsyncClient(
        limits=limits,
        timeout=client_timeout,
        follow_redirects=True,
        http2=_HTTP2_AVAILABLE,  # Only enable HTTP/2 when 'h2' is present
    )


# Global HTTP client instance
_global_client: Optional[httpx.AsyncClient] = None


async def get_http_client() -> httpx.AsyncClient:
    """Get or create the global HTTP client instance."""
    global _global_client
    if _global_client is None or _global_client.is_closed:
        _global_client = build_async_client()
    return _global_client


async def cleanup_http_client() -> None:
    """Close the global HTTP client."""
    global _global_client
    if _global_client is not None:
        await _global_client.aclose()
        _global_client = None
