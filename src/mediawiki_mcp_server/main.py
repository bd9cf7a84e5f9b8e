"""
Process Entry Point

Resolves configuration, initializes logging, attempts the startup login and
then serves MCP over stdio (plus the optional HTTP listener).

Startup order
-------------
1. Configuration (fatal on error: diagnostic on stderr, exit status 1)
2. Logging
3. Login attempt; a failure only downgrades the session to anonymous mode
4. Optional HTTP listener
5. stdio MCP server until the client disconnects
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional, Sequence

from .config import ConfigurationError, Settings, resolve_settings
from .http_app import build_http_server, create_app
from .logging_setup import setup_logging
from .server import create_server, serve_stdio
from .tools.base import ToolDispatcher
from .wiki.api_client import AuthError, MediaWikiClient, MediaWikiClientError

logger = logging.getLogger("mcp.app")


async def startup_login(client: MediaWikiClient) -> bool:
    """
    Log in before serving. Never raises for login failures.
    """
    try:
        logged_in = await client.login()
    except MediaWikiClientError as exc:
        if isinstance(exc, AuthError):
            logger.warning("%s", exc)
        else:
            logger.warning("Login failed: %s", exc)
        logger.warning("Running in anonymous mode (read-only)")
        return False

    if logged_in:
        logger.info("Login successful")
    else:
        logger.info("No credentials configured, running in anonymous mode")
    return logged_in


async def run_async(settings: Settings) -> None:
    client = MediaWikiClient.from_settings(settings)

    logger.info("Connected to MediaWiki API at: %s", client.api_url)
    logger.info("Authenticated user: %s", client.username or "None (anonymous mode)")

    await startup_login(client)

    http_server = None
    http_task: Optional[asyncio.Task] = None
    if settings.http_enabled:
        http_server = build_http_server(create_app(settings, client), settings)
        http_task = asyncio.create_task(http_server.serve())

    try:
        await serve_stdio(create_server(ToolDispatcher(client)))
    finally:
        if http_server is not None and http_task is not None:
            http_server.should_exit = True
            await http_task


def run(argv: Optional[Sequence[str]] = None) -> None:
    try:
        settings = resolve_settings(argv)
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level)

    try:
        asyncio.run(run_async(settings))
    except KeyboardInterrupt:
        logger.info("Shutting down mediawiki-mcp-server")
    except Exception:
        logger.exception("Fatal error running server")
        sys.exit(1)


if __name__ == "__main__":
    run()
