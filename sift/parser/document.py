"""
Parsed view of an HTML document.

HtmlDocument builds the DOM once and exposes the raw metadata sources the
field pickers need: <title>, flattened <head> meta tags, OpenGraph
properties and images, schema.org JSON-LD blocks, and whole-document text.
It does not decide anything; choosing between sources is the job of the
pickers in html.py and thumbnail.py.
"""

import json
import re
from typing import Any, Optional

from bs4 import BeautifulSoup, NavigableString

from ..logger import get_module_logger

logger = get_module_logger("parser.document")

# Elements whose text never belongs to the readable document
NON_CONTENT_TAGS = {'script', 'style', 'noscript', 'template', 'head', 'title'}

# og:image and og:image:url both open a new image; the other og:image:*
# properties describe the most recent one.
OG_IMAGE_OPENERS = ('image', 'image:url')

WHITESPACE_PATTERN = re.compile(r'\s+')


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(' ', text).strip()


class HtmlDocument:
    """DOM plus the metadata sources extracted from it."""

    def __init__(self, html: str):
        # html5lib builds the same tree a browser would, which matters for
        # pages with unclosed or misplaced tags.
        self.soup = BeautifulSoup(html, 'html5lib')

        self.meta: dict[str, str] = {}
        self.opengraph: dict[str, str] = {}
        self.opengraph_images: list[dict[str, str]] = []
        self._collect_head_meta()

        self.json_ld: list[dict[str, Any]] = self._collect_json_ld()
        self._text_content: Optional[str] = None

    @property
    def title(self) -> Optional[str]:
        """Text of the <title> element, if any."""
        node = self.soup.find('title')
        if node is None:
            return None
        return collapse_whitespace(node.get_text())

    @property
    def description(self) -> Optional[str]:
        return self.meta.get('description')

    @property
    def text_content(self) -> str:
        """Readable text of the whole document, one line per text run."""
        if self._text_content is None:
            self._text_content = self._collect_text()
        return self._text_content

    def first_text(self, selector: str) -> Optional[str]:
        """Collapsed text of the first element matching a CSS selector."""
        try:
            node = self.soup.select_one(selector)
        except Exception as e:
            logger.warning(f"Invalid CSS '{selector}': {e}")
            return None
        if node is None:
            return None
        return collapse_whitespace(node.get_text(separator=' '))

    def _collect_head_meta(self) -> None:
        """
        Flatten <head> meta tags into self.meta, keyed by lowercased name or
        property. The first occurrence of a key wins. og:* keys also feed the
        OpenGraph map (prefix stripped) and the OpenGraph image list.
        """
        head = self.soup.head
        if head is None:
            return

        for tag in head.find_all('meta'):
            key = tag.get('property') or tag.get('name')
            content = tag.get('content')
            if not key or content is None:
                continue
            key = key.strip().lower()
            content = content.strip()
            self.meta.setdefault(key, content)

            if not key.startswith('og:'):
                continue
            og_key = key[3:]
            self.opengraph.setdefault(og_key, content)

            if og_key in OG_IMAGE_OPENERS:
                self.opengraph_images.append({'url': content})
            elif og_key.startswith('image:') and self.opengraph_images:
                self.opengraph_images[-1].setdefault(og_key[len('image:'):], content)

    def _collect_json_ld(self) -> list[dict[str, Any]]:
        """
        Parse every <script type="application/ld+json"> block.

        Invalid JSON is skipped. A top-level array contributes each object;
        an object's "@graph" array contributes its objects after the object.
        """
        blocks = []
        for script in self.soup.find_all('script'):
            script_type = (script.get('type') or '').split(';')[0].strip().lower()
            if script_type != 'application/ld+json':
                continue
            raw = script.string if script.string is not None else script.get_text()
            try:
                value = json.loads(raw)
            except (TypeError, ValueError, RecursionError) as e:
                logger.debug(f"Skipping invalid JSON-LD block: {e}")
                continue

            items = value if isinstance(value, list) else [value]
            for item in items:
                if not isinstance(item, dict):
                    continue
                blocks.append(item)
                graph = item.get('@graph')
                if isinstance(graph, list):
                    blocks.extend(node for node in graph if isinstance(node, dict))
        return blocks

    def _collect_text(self) -> str:
        root = self.soup.body or self.soup
        lines = []
        for node in root.find_all(string=True):
            # Comments, doctypes and script/style strings are NavigableString
            # subclasses; only plain text counts.
            if type(node) is not NavigableString:
                continue
            if any(parent.name in NON_CONTENT_TAGS for parent in node.parents):
                continue
            text = collapse_whitespace(str(node))
            if text:
                lines.append(text)
        return '\n'.join(lines)
