"""
Content pipeline: a two-phase typestate machine.

    Content.new(url)              -> Content[Unfetched]
    await content.fetch(client)   -> Content[Fetched]     (or FetchError)
    content.parse()               -> Entry                (or ParseError)

The phase is a type parameter. fetch() is annotated to accept only
Content[Unfetched] and parse() only Content[Fetched], so a type checker
rejects parse() before fetch(). Each transition returns a new frozen value;
the previous one is never modified. At runtime the phase tag is checked as
well, and a violation is reported as the pipeline's own error type instead
of crashing.
"""

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

import httpx

from .exceptions import FetchError, ParseError, ParserError
from .logger import get_module_logger
from .parser import identify
from .schemas import METADATA_FIELDS, Entry, Metadata

logger = get_module_logger("content")


class ContentState:
    """Base class for phase tags. Tags are never instantiated."""


class Unfetched(ContentState):
    """Nothing has been retrieved yet."""


class Fetched(ContentState):
    """Headers and body have been captured."""


S = TypeVar("S", bound=ContentState)


@dataclass(frozen=True)
class Content(Generic[S]):
    """One unit of work: a URL moving through fetch and parse."""

    url: str
    state: type[ContentState] = Unfetched
    metadata: Metadata = field(default_factory=Metadata)
    body: Optional[bytes] = field(default=None, repr=False)
    headers: Optional[httpx.Headers] = field(default=None, repr=False)

    @staticmethod
    def new(url: str, metadata: Optional[Metadata] = None) -> "Content[Unfetched]":
        """Start a unit of work. Pure; performs no I/O and cannot fail."""
        return Content(url=str(url), state=Unfetched, metadata=metadata or Metadata())

    async def fetch(self: "Content[Unfetched]", client: httpx.AsyncClient) -> "Content[Fetched]":
        """
        Issue exactly one GET for the URL and capture headers and body.

        The status code is not checked: error pages often carry usable HTML,
        so a 404 body is handed to parse() like any other.

        Raises:
            FetchError: on any transport failure (DNS, connect, TLS, timeout,
                read, undecodable transfer encoding)
        """
        if self.state is not Unfetched:
            raise FetchError(self.url, RuntimeError("content has already been fetched"))

        logger.info(f"Fetching URL {self.url}")
        try:
            response = await client.get(self.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Fetch failed for {self.url}: {e!r}")
            raise FetchError(self.url, e) from e

        logger.info(f"Fetched {self.url}: HTTP {response.status_code}, {len(response.content)} bytes")
        return Content(
            url=self.url,
            state=Fetched,
            metadata=self.metadata,
            body=response.content,
            headers=response.headers,
        )

    def parse(self: "Content[Fetched]") -> Entry:
        """
        Turn the fetched body into an Entry. Never performs I/O.

        Metadata supplied to Content.new() takes precedence over what the
        document itself declares; extracted values fill the remaining gaps.

        Raises:
            ParseError: if no parser family recognizes the content, or the
                recognizing family cannot extract anything
        """
        if self.state is not Fetched or self.body is None or self.headers is None:
            logger.error(f"parse() called on unfetched content for {self.url}")
            raise ParseError(self.url, "content has not been fetched")

        parser = identify(self.body, self.headers, self.url)
        if parser is None:
            content_type = self.headers.get("content-type", "<none>")
            logger.warning(f"No parser recognized {self.url} (Content-Type: {content_type})")
            raise ParseError(self.url, f"no parser recognized the content (Content-Type: {content_type})")

        try:
            entry = parser.parse()
        except ParserError as e:
            logger.warning(f"{parser.name} parser failed for {self.url}: {e.message}")
            raise ParseError(self.url, e.message, parser=e.parser) from e
        except Exception as e:
            logger.exception(f"Unexpected {parser.name} parser failure for {self.url}")
            raise ParseError(self.url, f"unexpected parser failure: {e}", parser=parser.name) from e

        entry = entry.model_copy(update={"metadata": self._merge_metadata(entry.metadata)})
        logger.info(f"Parsed {self.url}: {len(entry.content)} chars of content")
        return entry

    def _merge_metadata(self, extracted: Metadata) -> Metadata:
        supplied = self.metadata.model_dump(exclude_none=True)
        if not supplied:
            return extracted
        merged = {name: getattr(extracted, name) for name in METADATA_FIELDS}
        merged.update(supplied)
        return Metadata(**merged)
