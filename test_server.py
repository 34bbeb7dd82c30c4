"""
Tests for the FastAPI service boundary: outcome → HTTP status mapping.
"""

import httpx
from fastapi.testclient import TestClient

from sift.client import create_client
from sift.config import Settings
from sift.server import create_app

URL = "https://example.com/post"

PAGE = (
    b"<html><head><title>Post</title>"
    b'<meta property="article:published_time" content="not-a-date">'
    b"</head><body><main><p>Body text.</p></main></body></html>"
)


def make_app(handler):
    client = create_client(Settings(), transport=httpx.MockTransport(handler))
    return create_app(client=client, settings=Settings())


def test_successful_ingest_returns_201_with_flat_entry():
    app = make_app(lambda request: httpx.Response(
        200, headers={"Content-Type": "text/html"}, content=PAGE, request=request
    ))
    with TestClient(app) as client:
        response = client.post("/url", json={"url": URL})

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Post"
    assert body["url"] == URL
    assert body["content"] == "Body text."
    assert body["origin"] == "example.com"
    assert body["summary"] == "Body text."
    # Absent fields are omitted, not null
    assert "published_time" not in body
    assert "thumbnail_url" not in body
    assert None not in body.values()


def test_fetch_error_returns_502():
    def handler(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    with TestClient(make_app(handler)) as client:
        response = client.post("/url", json={"url": URL})

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "FetchError"
    assert body["url"] == URL
    assert URL in body["message"]
    assert "name resolution failed" in body["message"]


def test_parse_error_returns_422():
    app = make_app(lambda request: httpx.Response(200, json={"not": "html"}, request=request))
    with TestClient(app) as client:
        response = client.post("/url", json={"url": URL})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "ParseError"
    assert URL in body["message"]


def test_invalid_request_body_is_rejected():
    app = make_app(lambda request: httpx.Response(500, request=request))
    with TestClient(app) as client:
        response = client.post("/url", json={"url": "not a url"})
    assert response.status_code == 422
    assert "detail" in response.json()


def test_health():
    app = make_app(lambda request: httpx.Response(500, request=request))
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
