"""
Factory for the shared network client.

One httpx.AsyncClient is created per process (by the server lifespan or
the CLI runner) and injected into Content.fetch(). It is never mutated
after construction, so any number of concurrent fetches may share it.
"""

from typing import Optional

import httpx

from .config import Settings, get_settings
from .logger import get_module_logger

logger = get_module_logger("client")

# Accept header advertises HTML first; other families may be registered later.
DEFAULT_ACCEPT = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"


def create_client(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """
    Create the shared async client.

    Args:
        settings: Settings to read identification headers and timeout from
        transport: Optional transport override (tests pass httpx.MockTransport)

    Returns:
        A configured httpx.AsyncClient; the caller owns it and must close it
    """
    settings = settings or get_settings()
    client = httpx.AsyncClient(
        headers={
            "User-Agent": settings.user_agent,
            "Accept": DEFAULT_ACCEPT,
        },
        timeout=httpx.Timeout(settings.timeout),
        follow_redirects=True,
        transport=transport,
    )
    logger.debug(f"HTTP client created (user agent: {settings.user_agent}, timeout: {settings.timeout})")
    return client
