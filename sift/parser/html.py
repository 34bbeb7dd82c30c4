"""
HTML parser family.

Recognizes HTML by Content-Type (text/html, application/xhtml+xml) or, when
the header is missing or wrong, by sniffing the start of the body. Extracts
an Entry with a strict, first-match-wins chain per field:

  title     og:title → twitter:title → <title> → first <h1> → ""
  summary   og:description → twitter:description → description
            → first non-blank line of the body content
  author    head meta (author, article:author, ...) → JSON-LD author → ""
  origin    og:site_name → application-name → twitter:site → URL host → ""
  times     article:*_time / og:updated_time → JSON-LD datePublished/dateModified
  content   first likely content container → whole-document text
  thumbnail see thumbnail.py

Optional sources that are missing or malformed count as "not found"; only a
document that cannot be decoded/parsed at all raises ParserError.
"""

import re
from datetime import datetime
from ipaddress import ip_address
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

import httpx

from ..exceptions import ParserError
from ..logger import get_module_logger
from ..schemas import Entry, Metadata
from .base import Parser
from .document import HtmlDocument, collapse_whitespace
from .thumbnail import pick_thumbnail
from .times import parse_time

logger = get_module_logger("parser.html")

HTML_MIME_TYPES = ('text/html', 'application/xhtml+xml')

# How much of the body to inspect when the Content-Type can't be trusted
SNIFF_LENGTH = 2048
SNIFF_TOKENS = (b'<!doctype html', b'<html')

# Upper bound on Entry.content, in characters
MAX_CONTENT_LENGTH = 400_000
TRUNCATION_MARKER = '…'

AUTHOR_META_KEYS = (
    'author',
    'article:author',
    'parsely-author',
    'dc.creator',
    'dcterms.creator',
    'byline',
    'byl',
)

# Likely main-content containers, most specific signal first
CONTENT_SELECTORS = (
    'article',
    'main',
    '[role=main]',
    '#content',
    '#main',
    '.post-content',
    '.article-content',
    '.article-body',
    '.entry-content',
    '[itemprop=articleBody]',
)

# Block-level elements collected from inside a content container
BLOCK_TAGS = ['p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li', 'blockquote', 'pre']

CHARSET_PATTERN = re.compile(r'charset\s*=\s*["\']?([^\s"\';]+)', re.IGNORECASE)


def parse_content_type(value: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Split a Content-Type header into (lowercased MIME essence, charset)."""
    if not value:
        return None, None
    essence = value.split(';', 1)[0].strip().lower() or None
    match = CHARSET_PATTERN.search(value)
    charset = match.group(1).strip().lower() if match else None
    return essence, charset


def looks_like_html(body: bytes) -> bool:
    """Case-insensitive sniff of the first 2048 bytes for an HTML opener."""
    probe = body[:SNIFF_LENGTH].lower()
    return any(token in probe for token in SNIFF_TOKENS)


def decode_body(body: bytes, charset: Optional[str]) -> str:
    """
    Decode the body to text.

    Only UTF-8 gets special handling (strict, then lossy). Any other
    declared charset, or none, falls back to lossy UTF-8 so a document is
    never rejected for its charset metadata alone.
    """
    if charset in ('utf-8', 'utf8'):
        try:
            return body.decode('utf-8')
        except UnicodeDecodeError:
            logger.debug("Body is not valid UTF-8 despite its charset; decoding lossily")
    return body.decode('utf-8', errors='replace')


def cap_length(text: str, limit: int = MAX_CONTENT_LENGTH) -> str:
    """Cut text to `limit` characters and append a marker when it was longer."""
    if len(text) <= limit:
        return text
    # str indexes code points, so the cut never splits a character
    return text[:limit] + TRUNCATION_MARKER


def _first_present(*values: Optional[str]) -> Optional[str]:
    """First value that is not None or blank, trimmed."""
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


def _strip_handle(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().lstrip('@')


def truncate_for_log(text: str, limit: int = 120) -> str:
    return text if len(text) <= limit else text[:limit] + '…'


def author_from_schema(value: Any) -> Optional[str]:
    """Author name from a JSON-LD object: string, {"name"}, or first usable list item."""
    if not isinstance(value, dict):
        return None
    author = value.get('author')
    if isinstance(author, str):
        return author
    if isinstance(author, dict):
        name = author.get('name')
        return name if isinstance(name, str) else None
    if isinstance(author, list):
        for item in author:
            if isinstance(item, dict) and isinstance(item.get('name'), str):
                return item['name']
            if isinstance(item, str):
                return item
    return None


def host_of(url: str) -> Optional[str]:
    """Host name of the URL; None for IP literals or unparsable URLs."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    try:
        ip_address(host)
    except ValueError:
        return host
    return None


def pick_title(document: HtmlDocument) -> str:
    title = _first_present(
        document.opengraph.get('title'),
        document.meta.get('twitter:title'),
        document.title,
        document.first_text('h1'),
    )
    return title or ''


def pick_author(document: HtmlDocument) -> str:
    meta = document.meta
    from_meta = _first_present(
        *(meta.get(key) for key in AUTHOR_META_KEYS),
        _strip_handle(meta.get('twitter:creator')),
    )
    if from_meta:
        return from_meta

    # Only <head> meta is flattened; author tags placed in <body> are ignored
    logger.debug("Author not found in <head> meta; trying JSON-LD")
    for block in document.json_ld:
        found = _first_present(author_from_schema(block))
        if found:
            return found
    return ''


def pick_origin(document: HtmlDocument, url: str) -> str:
    origin = _first_present(
        document.opengraph.get('site_name'),
        document.meta.get('application-name'),
        _strip_handle(document.meta.get('twitter:site')),
        host_of(url),
    )
    return origin or ''


def extract_times(document: HtmlDocument) -> tuple[Optional[datetime], Optional[datetime]]:
    """(published, updated) from head meta first, then JSON-LD blocks."""
    published = parse_time(document.meta.get('article:published_time'))
    updated = parse_time(document.meta.get('article:modified_time'))
    if updated is None:
        updated = parse_time(document.opengraph.get('updated_time'))

    for block in document.json_ld:
        if published is not None and updated is not None:
            break
        if published is None:
            value = block.get('datePublished')
            if isinstance(value, str):
                published = parse_time(value)
        if updated is None:
            value = block.get('dateModified')
            if isinstance(value, str):
                updated = parse_time(value)

    return published, updated


def _block_text(elem) -> str:
    if elem.name == 'pre':
        return elem.get_text().strip()
    return collapse_whitespace(elem.get_text(separator=' '))


def extract_main_content(document: HtmlDocument) -> Optional[str]:
    """
    Text of the first likely content container, or None.

    Inside the container every block-level element contributes its text;
    blocks nested inside another collected block (a <p> inside an <li>) are
    skipped so their text is not repeated. Blocks are joined with blank lines.
    """
    for selector in CONTENT_SELECTORS:
        try:
            container = document.soup.select_one(selector)
        except Exception as e:
            logger.warning(f"Invalid CSS '{selector}': {e}")
            continue
        if container is None:
            continue

        parts = []
        for elem in container.find_all(BLOCK_TAGS):
            if _has_block_ancestor(elem, container):
                continue
            text = _block_text(elem)
            if text:
                parts.append(text)

        joined = '\n\n'.join(parts)
        if joined.strip():
            logger.debug(f"Main content from '{selector}' ({len(parts)} blocks)")
            return joined
    return None


def _has_block_ancestor(elem, container) -> bool:
    for parent in elem.parents:
        if parent is container:
            return False
        if parent.name in BLOCK_TAGS:
            return True
    return False


class HtmlParser(Parser):
    """Parser family for HTML and XHTML documents."""

    name = "html"

    def __init__(self, body: bytes, url: str, charset: Optional[str] = None):
        self.body = body
        self.url = url
        self.charset = charset

    @classmethod
    def identify(
        cls,
        body: bytes,
        headers: Mapping[str, str],
        url: str
    ) -> Optional["HtmlParser"]:
        # httpx.Headers makes the lookup case-insensitive for plain dicts too
        essence, charset = parse_content_type(httpx.Headers(headers).get('content-type'))

        if essence in HTML_MIME_TYPES or looks_like_html(body):
            return cls(body, url, charset=charset)

        logger.debug("Body does not look like HTML; skipping HtmlParser")
        return None

    def parse(self) -> Entry:
        host = host_of(self.url) or ''
        logger.debug(f"Parsing HTML from {host} ({len(self.body)} bytes, charset: {self.charset})")

        html = decode_body(self.body, self.charset)
        if not html.strip():
            raise ParserError("Document is empty", parser=self.name)

        try:
            document = HtmlDocument(html)
        except Exception as e:
            logger.error(f"HTML parsing failed: {e}")
            raise ParserError(f"HTML parsing failed: {e}", parser=self.name,
                              details={"error": str(e)})

        title = pick_title(document)
        logger.debug(f"Title chosen: {truncate_for_log(title)!r}")

        content = extract_main_content(document)
        if content is None:
            logger.debug("No content container matched; using whole-document text")
            content = document.text_content

        summary = _first_present(
            document.opengraph.get('description'),
            document.meta.get('twitter:description'),
            document.description,
        )
        if summary is None:
            summary = next(
                (line.strip() for line in content.split('\n') if line.strip()),
                None
            )

        published_time, updated_time = extract_times(document)

        metadata = Metadata(
            summary=summary,
            thumbnail_url=pick_thumbnail(document, self.url),
            published_time=published_time,
            updated_time=updated_time,
        )

        return Entry(
            title=title,
            origin=pick_origin(document, self.url),
            author=pick_author(document),
            url=self.url,
            content=cap_length(content),
            metadata=metadata,
        )
