"""
Thumbnail selection for HTML pages.

Candidates are tried source by source, in priority order:

  1. OpenGraph images, largest declared width x height first
  2. Twitter Card image
  3. schema.org JSON-LD "image"
  4. <link rel="apple-touch-icon" | "icon" | "shortcut icon">, largest
     declared "sizes" first, then by a filename hint

Every candidate is made absolute against the page URL; the first one that
resolves wins.
"""

import re
from typing import Any, Iterable, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from ..logger import get_module_logger
from .document import HtmlDocument

logger = get_module_logger("parser.thumbnail")

TWITTER_IMAGE_KEYS = ("twitter:image", "twitter:image:src")

# An RFC 3986 scheme followed by ':' marks an already-absolute URL
SCHEME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*:')

# Lower is better. Common large touch-icon sizes beat a plain favicon.
FILENAME_HINTS = (
    ("512", -3),
    ("192", -2),
    ("180", -2),
    ("favicon", -1),
)


def absolutise(raw: Optional[str], page_url: str) -> Optional[str]:
    """
    Resolve a possibly relative URL against the page URL.

    Returns None for blank input or when the URL cannot be resolved.
    """
    if raw is None:
        return None
    candidate = raw.strip()
    if not candidate:
        return None

    if candidate.startswith("//"):
        scheme = urlsplit(page_url).scheme or "https"
        resolved = f"{scheme}:{candidate}"
    elif SCHEME_PATTERN.match(candidate):
        resolved = candidate
    else:
        try:
            resolved = urljoin(page_url, candidate)
        except ValueError:
            return None
    return resolved if _is_valid_url(resolved) else None


def _is_valid_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
        parts.port  # Raises ValueError on a malformed port
    except ValueError:
        return False
    if parts.scheme.lower() in ("http", "https") and not parts.hostname:
        return False
    return True


def parse_sizes_area(sizes: Optional[str]) -> int:
    """Largest area declared in a "sizes" attribute ("32x32 16x16"), or 0."""
    best = 0
    for token in (sizes or "").split():
        width, sep, height = token.lower().partition("x")
        if not sep or not _is_ascii_number(width) or not _is_ascii_number(height):
            continue
        best = max(best, int(width) * int(height))
    return best


def _is_ascii_number(value: str) -> bool:
    # str.isdigit() also accepts "²", which int() rejects
    return value.isascii() and value.isdecimal()


def score_filename(href: Optional[str]) -> int:
    lowered = (href or "").lower()
    for hint, score in FILENAME_HINTS:
        if hint in lowered:
            return score
    return 0


def _dimension(value: Optional[str]) -> int:
    if value is None:
        return 0
    value = value.strip()
    return int(value) if _is_ascii_number(value) else 0


def opengraph_candidates(document: HtmlDocument) -> list[str]:
    """OpenGraph image URLs ordered by declared area, descending (stable)."""
    ranked = []
    for image in document.opengraph_images:
        url = image.get("secure_url") or image.get("url") or ""
        if not url.strip():
            continue
        area = _dimension(image.get("width")) * _dimension(image.get("height"))
        ranked.append((url, area))
    # sorted() is stable, so equal areas keep declaration order
    ranked = sorted(ranked, key=lambda item: item[1], reverse=True)
    return [url for url, _ in ranked]


def image_from_schema(value: Any) -> Optional[str]:
    """Pull an image URL out of a JSON-LD object's "image" field."""
    if not isinstance(value, dict):
        return None
    image = value.get("image")
    if isinstance(image, str):
        return image
    if isinstance(image, dict):
        return _url_from_image_object(image)
    if isinstance(image, list):
        for item in image:
            if isinstance(item, str):
                return item
            found = _url_from_image_object(item)
            if found:
                return found
    return None


def _url_from_image_object(image: Any) -> Optional[str]:
    if not isinstance(image, dict):
        return None
    for key in ("contentUrl", "url"):
        found = image.get(key)
        if isinstance(found, str):
            return found
    return None


def icon_candidates(soup: BeautifulSoup) -> list[str]:
    """Icon hrefs from <link rel=...> ranked by declared size, then filename."""
    nodes = []
    seen = set()  # A link can carry several rel tokens; keep it once
    for rel in ("apple-touch-icon", "icon"):
        for link in soup.find_all("link", href=True):
            rels = link.get("rel") or []
            if isinstance(rels, str):
                rels = rels.split()
            rels = [token.lower() for token in rels]
            if rel in rels and id(link) not in seen:
                nodes.append(link)
                seen.add(id(link))

    nodes = sorted(
        nodes,
        key=lambda link: (-parse_sizes_area(link.get("sizes")), score_filename(link.get("href")))
    )
    return [link.get("href") for link in nodes]


def _first_absolute(candidates: Iterable[Optional[str]], page_url: str) -> Optional[str]:
    for candidate in candidates:
        resolved = absolutise(candidate, page_url)
        if resolved:
            return resolved
    return None


def pick_thumbnail(document: HtmlDocument, page_url: str) -> Optional[str]:
    """Best-effort absolute thumbnail URL for the page, or None."""
    sources = (
        ("opengraph", lambda: opengraph_candidates(document)),
        ("twitter", lambda: [document.meta.get(key) for key in TWITTER_IMAGE_KEYS]),
        ("schema.org", lambda: [image_from_schema(block) for block in document.json_ld]),
        ("icon", lambda: icon_candidates(document.soup)),
    )
    for source, candidates in sources:
        found = _first_absolute(candidates(), page_url)
        if found:
            logger.debug(f"Thumbnail from {source}: {found}")
            return found
    return None
