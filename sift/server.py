"""
FastAPI service boundary.

POST /url {"url": "..."} drives one URL through the pipeline and maps the
outcome to HTTP:

  success     → 201 with the serialized Entry (absent fields omitted)
  FetchError  → 502, the upstream could not be reached
  ParseError  → 422, the upstream answered but we could not make sense of it
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from . import __version__
from .client import create_client
from .config import Settings, get_settings
from .exceptions import FetchError, ParseError
from .logger import get_module_logger
from .main import Sift
from .schemas import Entry, UrlRequest

logger = get_module_logger("server")


def create_app(
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        client: Shared HTTP client. If given, the app uses it and leaves
                closing it to the caller; otherwise one is created on
                start-up and closed on shutdown.
        settings: Settings for the client created on start-up
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if client is None:
            owned = create_client(settings)
        app.state.sift = Sift(client=client or owned)
        logger.info("sift service started")
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
            logger.info("sift service stopped")

    app = FastAPI(
        title="sift",
        description="Fetches a URL and extracts a normalized entry",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError):
        logger.warning(exc.message)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=exc.to_response(),
        )

    @app.exception_handler(ParseError)
    async def parse_error_handler(request: Request, exc: ParseError):
        logger.warning(exc.message)
        return JSONResponse(
            status_code=422,
            content=exc.to_response(),
        )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.post("/url", status_code=status.HTTP_201_CREATED)
    async def handle_url(payload: UrlRequest, request: Request):
        url = str(payload.url)
        logger.info(f"Received URL {url}")
        entry: Entry = await request.app.state.sift.ingest(url)
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content=entry.model_dump(mode="json"),
        )

    return app
