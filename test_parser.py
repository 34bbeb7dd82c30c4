"""
Tests for the parser registry and the HTML parser family.

Each test builds a small inline document and checks one field chain, so a
failure points at exactly one heuristic. No network access is needed.
"""

from datetime import datetime, timezone

import pytest

from sift.exceptions import ParserError
from sift.parser import PARSERS, identify
from sift.parser.html import (
    MAX_CONTENT_LENGTH,
    TRUNCATION_MARKER,
    HtmlParser,
    cap_length,
    decode_body,
    looks_like_html,
    parse_content_type,
)
from sift.parser.thumbnail import absolutise, parse_sizes_area, score_filename
from sift.parser.times import parse_time

PAGE_URL = "https://news.example.com/2023/05/story.html"
HTML_HEADERS = {"Content-Type": "text/html; charset=utf-8"}


def parse_html(html: str, headers=None, url: str = PAGE_URL):
    """Identify and parse an inline document with the HTML family."""
    parser = HtmlParser.identify(html.encode("utf-8"), headers or HTML_HEADERS, url)
    assert parser is not None
    return parser.parse()


def page(head: str = "", body: str = "") -> str:
    return f"<!DOCTYPE html><html><head>{head}</head><body>{body}</body></html>"


# --- Recognition ---

def test_identify_accepts_html_content_types():
    for content_type in ("text/html", "TEXT/HTML; charset=UTF-8", "application/xhtml+xml"):
        parser = HtmlParser.identify(b"<p>hi</p>", {"content-type": content_type}, PAGE_URL)
        assert isinstance(parser, HtmlParser)


def test_identify_sniffs_html_when_content_type_is_wrong_or_missing():
    """A body containing <html> is recognized even without a trustworthy header."""
    body = b"<HTML><body><p>Hello</p></body></HTML>"
    assert isinstance(HtmlParser.identify(body, {"content-type": "application/octet-stream"}, PAGE_URL), HtmlParser)
    assert isinstance(HtmlParser.identify(b"<!doctype HTML><p>x</p>", {}, PAGE_URL), HtmlParser)


def test_identify_declines_json():
    body = b'{"title": "not html"}'
    assert HtmlParser.identify(body, {"content-type": "application/json"}, PAGE_URL) is None
    assert identify(body, {"content-type": "application/json"}, PAGE_URL) is None


def test_sniffing_only_looks_at_the_first_2048_bytes():
    body = b" " * 3000 + b"<html></html>"
    assert not looks_like_html(body)
    assert HtmlParser.identify(body, {"content-type": "text/plain"}, PAGE_URL) is None


def test_registry_returns_first_matching_probe():
    first, second = object(), object()
    probes = (
        lambda body, headers, url: None,
        lambda body, headers, url: first,
        lambda body, headers, url: second,
    )
    assert identify(b"", {}, PAGE_URL, parsers=probes) is first


def test_registry_lists_html_family():
    assert PARSERS[0] == HtmlParser.identify


# --- Decoding ---

def test_parse_content_type():
    assert parse_content_type('text/html; charset="UTF-8"') == ("text/html", "utf-8")
    assert parse_content_type("application/xhtml+xml") == ("application/xhtml+xml", None)
    assert parse_content_type(None) == (None, None)


def test_decode_body_is_strict_utf8_then_lossy():
    assert decode_body("café".encode("utf-8"), "utf-8") == "café"
    assert decode_body(b"caf\xe9", "utf-8") == "caf�"


def test_unsupported_charset_degrades_to_lossy_utf8():
    """A latin-1 declaration is not transcoded, but the document is still parsed."""
    body = b"<html><body><p>caf\xe9</p></body></html>"
    parser = HtmlParser.identify(body, {"content-type": "text/html; charset=ISO-8859-1"}, PAGE_URL)
    entry = parser.parse()
    assert "caf�" in entry.content


def test_empty_document_raises_parser_error():
    parser = HtmlParser(b"   \n", PAGE_URL)
    with pytest.raises(ParserError):
        parser.parse()


# --- Title ---

def test_opengraph_title_wins_over_title_tag():
    html = page(
        head='<title>Document Title</title><meta property="og:title" content="OpenGraph Title">',
    )
    assert parse_html(html).title == "OpenGraph Title"


def test_title_falls_back_through_twitter_title_and_h1():
    html = page(head='<title>Doc</title><meta name="twitter:title" content="  Card Title ">')
    assert parse_html(html).title == "Card Title"

    assert parse_html(page(head="<title> Doc  Title </title>")).title == "Doc Title"
    assert parse_html(page(body="<h1>Only <em>Heading</em></h1>")).title == "Only Heading"
    assert parse_html(page(body="<p>No title at all</p>")).title == ""


def test_blank_opengraph_title_counts_as_missing():
    html = page(head='<meta property="og:title" content="  "><title>Real</title>')
    assert parse_html(html).title == "Real"


# --- Summary ---

def test_summary_priority():
    html = page(head=(
        '<meta name="description" content="Generic">'
        '<meta name="twitter:description" content="Twitter">'
        '<meta property="og:description" content="OpenGraph">'
    ))
    assert parse_html(html).metadata.summary == "OpenGraph"

    html = page(head='<meta name="description" content="Generic">')
    assert parse_html(html).metadata.summary == "Generic"


def test_summary_falls_back_to_first_content_paragraph():
    html = page(body="<article><p>  </p><p>First real paragraph.</p><p>Second.</p></article>")
    assert parse_html(html).metadata.summary == "First real paragraph."


# --- Author ---

def test_author_from_head_meta():
    html = page(head='<meta name="DC.creator" content="Ann Author">')
    assert parse_html(html).author == "Ann Author"


def test_author_meta_priority_and_twitter_handle():
    html = page(head=(
        '<meta name="byline" content="By Line">'
        '<meta property="article:author" content="Article Author">'
    ))
    assert parse_html(html).author == "Article Author"

    html = page(head='<meta name="twitter:creator" content="@handle">')
    assert parse_html(html).author == "handle"


def test_author_from_json_ld_object():
    """No head meta author, one JSON-LD block with an author object."""
    html = page(head=(
        '<script type="application/ld+json">'
        '{"@type": "NewsArticle", "author": {"@type": "Person", "name": "Jane Doe"}}'
        '</script>'
    ))
    assert parse_html(html).author == "Jane Doe"


def test_author_from_json_ld_array_and_graph():
    html = page(head=(
        '<script type="application/ld+json">{"author": [{"@type": "Person"}, "Sam Smith"]}</script>'
    ))
    assert parse_html(html).author == "Sam Smith"

    html = page(head=(
        '<script type="application/ld+json">'
        '{"@context": "https://schema.org", "@graph": [{"@type": "WebSite"}, {"author": "Graph Author"}]}'
        '</script>'
    ))
    assert parse_html(html).author == "Graph Author"


def test_invalid_json_ld_is_ignored():
    html = page(head=(
        '<script type="application/ld+json">{not json</script>'
        '<script type="application/ld+json">{"author": "Valid Block"}</script>'
    ))
    assert parse_html(html).author == "Valid Block"


def test_deeply_nested_json_ld_is_skipped():
    html = page(
        head=(
            "<title>Nested</title>"
            '<script type="application/ld+json">' + "[" * 100_000 + "</script>"
            '<script type="application/ld+json">{"author": "Valid Block"}</script>'
        ),
        body="<p>Body</p>",
    )
    entry = parse_html(html)
    assert entry.title == "Nested"
    assert entry.author == "Valid Block"


def test_missing_author_is_empty_string():
    assert parse_html(page(body="<p>text</p>")).author == ""


# --- Origin ---

def test_origin_priority():
    html = page(head=(
        '<meta name="twitter:site" content="@ExampleNews">'
        '<meta name="application-name" content="Example App">'
        '<meta property="og:site_name" content="Example News">'
    ))
    assert parse_html(html).origin == "Example News"

    html = page(head='<meta name="twitter:site" content="@ExampleNews">')
    assert parse_html(html).origin == "ExampleNews"


def test_origin_falls_back_to_host():
    assert parse_html(page(body="<p>x</p>")).origin == "news.example.com"
    assert parse_html(page(body="<p>x</p>"), url="http://127.0.0.1:8000/page").origin == ""


# --- Times ---

def test_parse_time_formats():
    assert parse_time("2023-05-01T12:00:00Z") == datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert parse_time("2023-05-01") == datetime(2023, 5, 1, 0, 0, tzinfo=timezone.utc)
    assert parse_time("2023-05-01T14:00:00+02:00") == datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert parse_time("2023-05-01 09:30:15") == datetime(2023, 5, 1, 9, 30, 15, tzinfo=timezone.utc)
    assert parse_time("2023-05-01 09:30") == datetime(2023, 5, 1, 9, 30, tzinfo=timezone.utc)
    assert parse_time("not-a-date") is None
    assert parse_time("0001-01-01T00:00:00+01:00") is None
    assert parse_time("9999-12-31T23:59:59-01:00") is None
    assert parse_time("") is None
    assert parse_time(None) is None


def test_times_from_head_meta():
    html = page(head=(
        '<meta property="article:published_time" content="2023-05-01T12:00:00Z">'
        '<meta property="og:updated_time" content="2023-05-02 10:15:00">'
    ))
    metadata = parse_html(html).metadata
    assert metadata.published_time == datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert metadata.updated_time == datetime(2023, 5, 2, 10, 15, tzinfo=timezone.utc)


def test_times_scan_json_ld_blocks_until_both_found():
    html = page(head=(
        '<script type="application/ld+json">{"datePublished": "2023-05-01"}</script>'
        '<script type="application/ld+json">{"dateModified": "2023-06-02T08:30:00+02:00"}</script>'
    ))
    metadata = parse_html(html).metadata
    assert metadata.published_time == datetime(2023, 5, 1, tzinfo=timezone.utc)
    assert metadata.updated_time == datetime(2023, 6, 2, 6, 30, tzinfo=timezone.utc)


def test_unparsable_time_leaves_field_absent():
    html = page(
        head='<meta property="article:published_time" content="not-a-date"><title>Still Works</title>',
    )
    entry = parse_html(html)
    assert entry.title == "Still Works"
    assert entry.metadata.published_time is None


def test_out_of_range_time_leaves_field_absent():
    html = page(head=(
        '<meta property="article:published_time" content="0001-01-01T00:00:00+01:00">'
        '<meta property="article:modified_time" content="2023-05-02T10:00:00Z">'
        "<title>Placeholder Date</title>"
    ))
    entry = parse_html(html)
    assert entry.title == "Placeholder Date"
    assert entry.metadata.published_time is None
    assert entry.metadata.updated_time == datetime(2023, 5, 2, 10, 0, tzinfo=timezone.utc)


# --- Main content ---

def test_main_content_from_article_blocks():
    html = page(body=(
        "<nav><p>Menu</p></nav>"
        "<article>"
        "<h2>Heading</h2>"
        "<p>First   paragraph.</p>"
        "<ul><li><p>Nested item</p></li></ul>"
        "<blockquote>Quote</blockquote>"
        "</article>"
        "<footer><p>Footer</p></footer>"
    ))
    assert parse_html(html).content == "Heading\n\nFirst paragraph.\n\nNested item\n\nQuote"


def test_main_content_uses_later_selector_when_earlier_container_is_empty():
    html = page(body=(
        "<article><img src='x.png'></article>"
        "<div class='entry-content'><p>Entry text</p></div>"
    ))
    assert parse_html(html).content == "Entry text"


def test_main_content_falls_back_to_document_text():
    html = page(body="<div><span>Hello</span> world</div><script>var hidden = 1;</script>")
    entry = parse_html(html)
    assert entry.content == "Hello\nworld"
    assert "hidden" not in entry.content


def test_content_is_capped_at_a_character_boundary():
    """Multi-byte characters past the cap are cut cleanly and marked."""
    long_text = "é" * (MAX_CONTENT_LENGTH + 50)
    entry = parse_html(page(body=f"<article><p>{long_text}</p></article>"))
    assert len(entry.content) == MAX_CONTENT_LENGTH + len(TRUNCATION_MARKER)
    assert entry.content.endswith(TRUNCATION_MARKER)
    assert entry.content[:MAX_CONTENT_LENGTH] == "é" * MAX_CONTENT_LENGTH


def test_cap_length_leaves_short_text_alone():
    assert cap_length("short", limit=10) == "short"
    assert cap_length("0123456789", limit=10) == "0123456789"
    assert cap_length("0123456789ab", limit=10) == "0123456789" + TRUNCATION_MARKER


# --- Thumbnail ---

def test_thumbnail_prefers_largest_opengraph_image():
    html = page(head=(
        '<meta property="og:image" content="/small.png">'
        '<meta property="og:image:width" content="100">'
        '<meta property="og:image:height" content="100">'
        '<meta property="og:image" content="/large.png">'
        '<meta property="og:image:width" content="1200">'
        '<meta property="og:image:height" content="630">'
    ))
    assert parse_html(html).metadata.thumbnail_url == "https://news.example.com/large.png"


def test_thumbnail_ties_keep_declaration_order_and_prefer_secure_url():
    html = page(head=(
        '<meta property="og:image" content="http://img.example.com/first.png">'
        '<meta property="og:image:secure_url" content="https://img.example.com/first.png">'
        '<meta property="og:image" content="http://img.example.com/second.png">'
    ))
    assert parse_html(html).metadata.thumbnail_url == "https://img.example.com/first.png"


def test_thumbnail_from_twitter_card_is_made_absolute():
    html = page(head='<meta name="twitter:image" content="images/card.png">')
    assert parse_html(html).metadata.thumbnail_url == "https://news.example.com/2023/05/images/card.png"


def test_thumbnail_from_json_ld_image_object():
    html = page(head=(
        '<script type="application/ld+json">'
        '{"image": {"@type": "ImageObject", "url": "//img.example.com/a.jpg"}}'
        '</script>'
    ))
    assert parse_html(html).metadata.thumbnail_url == "https://img.example.com/a.jpg"


def test_thumbnail_from_icons_ranked_by_size_then_filename():
    html = page(head=(
        '<link rel="icon" href="/favicon-32.png" sizes="32x32">'
        '<link rel="apple-touch-icon" href="/touch.png" sizes="180x180">'
    ))
    assert parse_html(html).metadata.thumbnail_url == "https://news.example.com/touch.png"

    html = page(head=(
        '<link rel="shortcut icon" href="/favicon.ico">'
        '<link rel="icon" href="/android-chrome-512.png">'
    ))
    assert parse_html(html).metadata.thumbnail_url == "https://news.example.com/android-chrome-512.png"


def test_unicode_digit_dimensions_count_as_undeclared():
    html = page(head=(
        '<meta property="og:image" content="/first.png">'
        '<meta property="og:image:width" content="²">'
        '<meta property="og:image:height" content="²">'
        '<meta property="og:image" content="/second.png">'
        "<title>Still Parsed</title>"
    ))
    entry = parse_html(html)
    assert entry.title == "Still Parsed"
    assert entry.metadata.thumbnail_url == "https://news.example.com/first.png"

    html = page(head='<link rel="icon" href="/odd.png" sizes="³x³">')
    assert parse_html(html).metadata.thumbnail_url == "https://news.example.com/odd.png"


def test_unresolvable_opengraph_image_falls_through_to_twitter():
    html = page(head=(
        '<meta property="og:image" content="http://[broken/x.png">'
        '<meta name="twitter:image" content="/good.png">'
    ))
    assert parse_html(html).metadata.thumbnail_url == "https://news.example.com/good.png"


def test_no_thumbnail_candidates():
    assert parse_html(page(body="<p>plain</p>")).metadata.thumbnail_url is None


def test_absolutise():
    assert absolutise("https://cdn.example.com/a.png", PAGE_URL) == "https://cdn.example.com/a.png"
    assert absolutise("//cdn.example.com/a.png", PAGE_URL) == "https://cdn.example.com/a.png"
    assert absolutise("/a.png", PAGE_URL) == "https://news.example.com/a.png"
    assert absolutise("a.png", PAGE_URL) == "https://news.example.com/2023/05/a.png"
    assert absolutise("   ", PAGE_URL) is None
    assert absolutise(None, PAGE_URL) is None
    assert absolutise("http://[broken/x.png", PAGE_URL) is None
    assert absolutise("https://cdn.example.com:99999/a.png", PAGE_URL) is None
    assert absolutise("https:///a.png", PAGE_URL) is None


def test_icon_size_and_filename_helpers():
    assert parse_sizes_area("32x32 180x180") == 180 * 180
    assert parse_sizes_area("any") == 0
    assert parse_sizes_area(None) == 0
    assert parse_sizes_area("³x³ 16x16") == 16 * 16
    assert parse_sizes_area("٣x٣") == 0
    assert score_filename("/icon-512.png") < score_filename("/icon-192.png") < score_filename("/favicon.ico") < score_filename("/logo.png")
