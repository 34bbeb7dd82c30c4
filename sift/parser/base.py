"""
Parser family contract.

A parser family is a self-identifying extraction strategy for one content
type. identify() looks at the raw body, the response headers and the URL
and either declines (returns None) or returns an instance that holds
whatever it needs to extract an Entry later (decoded charset, the body, ...).
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from ..schemas import Entry


class Parser(ABC):
    """Abstract base class for parser families."""

    # Short family name used in logs and ParserError.parser
    name: str = "base"

    @classmethod
    @abstractmethod
    def identify(
        cls,
        body: bytes,
        headers: Mapping[str, str],
        url: str
    ) -> Optional["Parser"]:
        """
        Recognize the content and return a ready extractor, or None to decline.

        Must not raise for content it does not understand.
        """
        pass

    @abstractmethod
    def parse(self) -> Entry:
        """
        Extract an Entry.

        Raises:
            ParserError: if the document cannot be decoded or parsed at all
        """
        pass
