"""
Main orchestrator for sift.

Drives one URL through the pipeline: Content.new → fetch → parse.
The HTTP client is injected so a single pooled client can serve every
request in the process; when none is given, Sift creates (and later
closes) its own.
"""

from typing import Optional

import httpx

from .client import create_client
from .config import Settings
from .content import Content
from .logger import get_module_logger
from .schemas import Entry, Metadata

logger = get_module_logger("main")


class Sift:
    """
    Ingests URLs into Entries.

    Usage:
        async with Sift() as sift:
            entry = await sift.ingest("https://example.com/post")
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None
    ):
        # Only close the client on exit if we created it
        self._owns_client = client is None
        self.client = client or create_client(settings)

    async def ingest(self, url: str, metadata: Optional[Metadata] = None) -> Entry:
        """
        Fetch and parse one URL.

        Raises:
            FetchError: the resource could not be retrieved
            ParseError: the resource could not be turned into an Entry
        """
        content = Content.new(url, metadata)
        fetched = await content.fetch(self.client)
        return fetched.parse()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "Sift":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


async def ingest_url(url: str, client: Optional[httpx.AsyncClient] = None) -> Entry:
    """Convenience function to ingest a single URL."""
    async with Sift(client=client) as sift:
        return await sift.ingest(url)
