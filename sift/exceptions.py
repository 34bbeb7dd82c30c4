"""
Custom exceptions for sift.

Error philosophy:
  - FetchError  → the resource could not be obtained (DNS, connect, TLS,
                  timeout, read). Surfaced as "upstream unavailable".
  - ParseError  → the resource was obtained but no parser family recognized
                  it, or the recognizing family could not extract anything.
  - ParserError → raised inside a parser family; the pipeline always wraps
                  it into a ParseError before it leaves Content.parse().

FetchError and ParseError are the only errors leaving the pipeline. Both
carry the originating URL, and neither is retried. Individual field
heuristics never raise: a missing title or malformed timestamp is simply
an absent field on the Entry.
"""

from typing import Optional


class SiftError(Exception):
    """Base exception for all sift errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ContentError(SiftError):
    """A terminal failure for one URL. Carries the URL for logging."""

    def __init__(self, message: str, url: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.url = url

    def to_response(self) -> dict:
        """Convert to the JSON body returned by the service boundary."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "url": self.url,
        }


class FetchError(ContentError):
    """Raised when the resource could not be retrieved."""

    def __init__(self, url: str, error: BaseException):
        super().__init__(
            f"Failed to fetch URL {url}: {error}",
            url=url,
            details={"error": str(error), "error_type": type(error).__name__}
        )
        # The underlying transport exception (usually an httpx.HTTPError)
        self.error = error


class ParseError(ContentError):
    """Raised when a fetched body could not be turned into an Entry."""

    def __init__(self, url: str, cause: str, parser: Optional[str] = None):
        details = {"cause": cause}
        if parser:
            details["parser"] = parser
        super().__init__(
            f"Failed to parse body. URL: {url}: {cause}",
            url=url,
            details=details
        )
        self.cause = cause
        self.parser = parser  # Family that recognized the body, if any


class ParserError(SiftError):
    """Raised by a parser family when the document cannot be decoded or parsed at all."""

    def __init__(self, message: str, parser: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.parser = parser  # Family name, e.g. "html"
