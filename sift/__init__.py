"""
sift

Fetches a single web resource and extracts a normalized Entry from it.
- Content:  fetch/parse typestate pipeline
- parser:   ordered registry of self-identifying parser families (HTML)
- server:   FastAPI boundary mapping outcomes to HTTP responses

Public API surface:
  Pipeline     — Content, Unfetched, Fetched, Sift, ingest_url
  Data models  — Entry, Metadata
  Error types  — ContentError, FetchError (upstream), ParseError (content)
  Client       — create_client
"""

__version__ = "0.1.0"

# --- Data models ---
from .schemas import Entry, Metadata

# --- Exceptions (callers should catch these for error handling) ---
from .exceptions import SiftError, ContentError, FetchError, ParseError, ParserError

# --- Pipeline ---
from .content import Content, Unfetched, Fetched
from .client import create_client
from .main import Sift, ingest_url

__all__ = [
    "Entry",
    "Metadata",
    "SiftError",
    "ContentError",
    "FetchError",
    "ParseError",
    "ParserError",
    "Content",
    "Unfetched",
    "Fetched",
    "create_client",
    "Sift",
    "ingest_url",
]
