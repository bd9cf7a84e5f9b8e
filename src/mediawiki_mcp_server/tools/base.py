"""
Tool Dispatch Layer

This module defines the central, authoritative dispatch mechanism for all
MCP tool calls. It enforces:

- Explicit tool allow-listing
- Argument validation
- Login before every tool except the anonymous reads
- Uniform error behavior: no exception ever crosses the tool-call boundary

No tool is callable unless it is registered here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from mcp import types

from ..wiki.api_client import MediaWikiClient
from ..wiki.models import ToolPayload
from .definitions import (
    DEFAULT_CREATE_SUMMARY,
    DEFAULT_LIMIT,
    DEFAULT_UPDATE_SUMMARY,
    TOOL_CREATE_PAGE,
    TOOL_GET_CATEGORIES,
    TOOL_GET_PAGE_HISTORY,
    TOOL_READ_PAGE,
    TOOL_SEARCH_PAGES,
    TOOL_UPDATE_PAGE,
)
from .wiki_tools import (
    tool_create_page,
    tool_get_categories,
    tool_get_page_history,
    tool_read_page,
    tool_search_pages,
    tool_update_page,
)

logger = logging.getLogger("mcp.tools")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class ToolError(RuntimeError):
    """Base exception for dispatcher-level failures."""


class InvalidArgumentsError(ToolError):
    """Raised when a tool is invoked without its required arguments."""


class UnknownToolError(ToolError):
    """Raised when the requested tool is not registered."""


# ---------------------------------------------------------------------
# Argument Helpers
# ---------------------------------------------------------------------

def _require_str(
    tool_name: str,
    args: Dict[str, Any],
    field: str,
    allow_empty: bool = False,
) -> str:
    value = args.get(field)
    if not isinstance(value, str) or (not value and not allow_empty):
        raise InvalidArgumentsError(f"{tool_name} requires '{field}' argument.")
    return value


def _optional_str(args: Dict[str, Any], field: str, default: str) -> str:
    value = args.get(field)
    if value is None:
        return default
    return str(value)


def _optional_int(tool_name: str, args: Dict[str, Any], field: str, default: int) -> int:
    value = args.get(field)
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidArgumentsError(f"{tool_name} '{field}' must be a number.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentsError(f"{tool_name} '{field}' must be a number.") from exc


# ---------------------------------------------------------------------
# Tool Registry (AUTHORITATIVE)
# ---------------------------------------------------------------------

ToolHandler = Callable[[Dict[str, Any], MediaWikiClient], Awaitable[ToolPayload]]


async def _handle_search_pages(args: Dict[str, Any], client: MediaWikiClient) -> ToolPayload:
    query = _require_str(TOOL_SEARCH_PAGES, args, "query")
    limit = _optional_int(TOOL_SEARCH_PAGES, args, "limit", DEFAULT_LIMIT)
    return await tool_search_pages(client, query, limit)


async def _handle_read_page(args: Dict[str, Any], client: MediaWikiClient) -> ToolPayload:
    title = _require_str(TOOL_READ_PAGE, args, "title")
    return await tool_read_page(client, title)


async def _handle_create_page(args: Dict[str, Any], client: MediaWikiClient) -> ToolPayload:
    title = _require_str(TOOL_CREATE_PAGE, args, "title")
    content = _require_str(TOOL_CREATE_PAGE, args, "content", allow_empty=True)
    summary = _optional_str(args, "summary", DEFAULT_CREATE_SUMMARY)
    return await tool_create_page(client, title, content, summary)


async def _handle_update_page(args: Dict[str, Any], client: MediaWikiClient) -> ToolPayload:
    title = _require_str(TOOL_UPDATE_PAGE, args, "title")
    content = _require_str(TOOL_UPDATE_PAGE, args, "content", allow_empty=True)
    summary = _optional_str(args, "summary", DEFAULT_UPDATE_SUMMARY)
    return await tool_update_page(client, title, content, summary)


async def _handle_get_page_history(args: Dict[str, Any], client: MediaWikiClient) -> ToolPayload:
    title = _require_str(TOOL_GET_PAGE_HISTORY, args, "title")
    limit = _optional_int(TOOL_GET_PAGE_HISTORY, args, "limit", DEFAULT_LIMIT)
    return await tool_get_page_history(client, title, limit)


async def _handle_get_categories(args: Dict[str, Any], client: MediaWikiClient) -> ToolPayload:
    title = _require_str(TOOL_GET_CATEGORIES, args, "title")
    return await tool_get_categories(client, title)


TOOL_REGISTRY: Dict[str, ToolHandler] = {
    TOOL_SEARCH_PAGES: _handle_search_pages,
    TOOL_READ_PAGE: _handle_read_page,
    TOOL_CREATE_PAGE: _handle_create_page,
    TOOL_UPDATE_PAGE: _handle_update_page,
    TOOL_GET_PAGE_HISTORY: _handle_get_page_history,
    TOOL_GET_CATEGORIES: _handle_get_categories,
}

# Tools that never trigger a login attempt
ANONYMOUS_TOOLS = frozenset({TOOL_SEARCH_PAGES, TOOL_READ_PAGE})


# ---------------------------------------------------------------------
# Result Formatting
# ---------------------------------------------------------------------

def text_result(payload: Dict[str, Any]) -> types.CallToolResult:
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text",
                text=json.dumps(payload, indent=2, ensure_ascii=False),
            )
        ],
    )


def error_result(message: str) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=f"Error: {message}")],
        isError=True,
    )


# ---------------------------------------------------------------------
# Public Dispatch API
# ---------------------------------------------------------------------

class ToolDispatcher:
    """
    Routes MCP tool calls to the wiki client that owns the session.
    """

    def __init__(self, client: MediaWikiClient) -> None:
        self.client = client

    async def invoke(
        self,
        tool_name: str,
        args: Optional[Dict[str, Any]],
    ) -> ToolPayload:
        """
        Run a tool and return its typed result.

        Raises
        ------
        InvalidArgumentsError
            If no arguments were supplied or a required one is missing.

        UnknownToolError
            If the tool name is not registered.

        MediaWikiClientError
            Any client failure, including a rejected login.
        """
        if args is None:
            raise InvalidArgumentsError("Arguments are required")

        handler = TOOL_REGISTRY.get(tool_name)
        if handler is None:
            raise UnknownToolError(f"Unknown tool: {tool_name}")

        if tool_name not in ANONYMOUS_TOOLS:
            # No-op when anonymous or already logged in
            await self.client.login()

        return await handler(args, self.client)

    async def dispatch(
        self,
        tool_name: str,
        args: Optional[Dict[str, Any]],
    ) -> types.CallToolResult:
        """
        Run a tool and wrap the outcome as an MCP tool result.

        Failures become `isError` results carrying "Error: <message>".
        """
        try:
            result = await self.invoke(tool_name, args)
        except Exception as exc:
            logger.warning("Tool %s failed: %s", tool_name, exc)
            logger.debug("Tool failure traceback", exc_info=exc)
            return error_result(str(exc))

        return text_result(result.to_payload())
