"""
Parser registry.

PARSERS is the ordered list of parser-family probes. Order is priority: if
two families could handle the same document, the one listed first wins.
Adding a family means writing a Parser subclass and appending its
identify() here; neither existing families nor identify() below change.
"""

from typing import Callable, Mapping, Optional

from ..logger import get_module_logger
from .base import Parser
from .html import HtmlParser

logger = get_module_logger("parser")

ParserProbe = Callable[[bytes, Mapping[str, str], str], Optional[Parser]]

PARSERS: tuple[ParserProbe, ...] = (
    HtmlParser.identify,
)


def identify(
    body: bytes,
    headers: Mapping[str, str],
    url: str,
    parsers: tuple[ParserProbe, ...] = PARSERS
) -> Optional[Parser]:
    """Return the first family that recognizes the content, or None."""
    for probe in parsers:
        parser = probe(body, headers, url)
        if parser is not None:
            logger.debug(f"Content recognized by {type(parser).__name__}")
            return parser
    return None


__all__ = ["Parser", "HtmlParser", "PARSERS", "ParserProbe", "identify"]
