"""
Optional HTTP Listener

A small FastAPI application served next to the stdio MCP stream. It exposes
a health endpoint behind CORS headers, optionally over TLS. It performs no
tool routing: MCP traffic only flows over stdio.

The listener is off by default.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import health_routes
from .config import Settings
from .wiki.api_client import MediaWikiClient, MediaWikiClientError

logger = logging.getLogger("mcp.http")


CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"]


# ---------------------------------------------------------------------
# Error Handlers
# ---------------------------------------------------------------------

async def wiki_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Report a failed MediaWiki round trip as 502 with the client's message.

    Client error messages carry API codes and login reasons, never secrets.
    """
    logger.warning(
        "MediaWiki call failed during %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return JSONResponse(
        status_code=502,
        content={"error": "mediawiki_error", "detail": str(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Final safety net: log the traceback, return a fixed JSON 500 body.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": "Internal server error"},
    )


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(settings: Settings, client: MediaWikiClient) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    settings : Settings
        Resolved process settings (CORS origins).

    client : MediaWikiClient
        The client whose session state the health route reports.
    """
    app = FastAPI(
        title="mediawiki-mcp-server",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.wiki_client = client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    app.add_exception_handler(MediaWikiClientError, wiki_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_routes.router)

    return app


# ---------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------

def build_http_server(app: FastAPI, settings: Settings) -> uvicorn.Server:
    """
    Build a uvicorn server for the app.

    uvicorn's own logging config is disabled: its default handlers write
    access logs to stdout, which carries the MCP stream.
    """
    config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_config=None,
        access_log=False,
        ssl_keyfile=settings.ssl_key_path if settings.ssl_enabled else None,
        ssl_certfile=settings.ssl_cert_path if settings.ssl_enabled else None,
    )
    logger.info(
        "Starting HTTP listener on port %s (%s)",
        settings.port,
        "HTTPS" if settings.ssl_enabled else "HTTP",
    )
    return uvicorn.Server(config)
