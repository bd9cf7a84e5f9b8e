"""
MCP Tool Definitions

Authoritative descriptors for the tools this server exposes. These must stay
in sync with the handler table in tools/base.py: only tools listed here are
advertised to clients, and only tools in the registry can be invoked.
"""

from __future__ import annotations

from typing import Final, List

from mcp import types


# ---------------------------------------------------------------------
# Tool Name Constants (Single Source of Truth)
# ---------------------------------------------------------------------

TOOL_SEARCH_PAGES: Final[str] = "search_pages"
TOOL_READ_PAGE: Final[str] = "read_page"
TOOL_CREATE_PAGE: Final[str] = "create_page"
TOOL_UPDATE_PAGE: Final[str] = "update_page"
TOOL_GET_PAGE_HISTORY: Final[str] = "get_page_history"
TOOL_GET_CATEGORIES: Final[str] = "get_categories"

DEFAULT_LIMIT: Final[int] = 10
MAX_SEARCH_LIMIT: Final[int] = 50

DEFAULT_CREATE_SUMMARY: Final[str] = "Created via MCP"
DEFAULT_UPDATE_SUMMARY: Final[str] = "Updated via MCP"


# ---------------------------------------------------------------------
# Tool Definitions
# ---------------------------------------------------------------------

TOOL_DEFINITIONS: List[types.Tool] = [
    types.Tool(
        name=TOOL_SEARCH_PAGES,
        description="Search for pages in the wiki using keywords",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query string",
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results to return (default: 10, max: 50)",
                    "default": DEFAULT_LIMIT,
                },
            },
            "required": ["query"],
        },
    ),
    types.Tool(
        name=TOOL_READ_PAGE,
        description="Fetch the raw wikitext content of a page",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title of the page to read",
                },
            },
            "required": ["title"],
        },
    ),
    types.Tool(
        name=TOOL_CREATE_PAGE,
        description="Create a new wiki page",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title of the new page",
                },
                "content": {
                    "type": "string",
                    "description": "Wiki content for the new page",
                },
                "summary": {
                    "type": "string",
                    "description": "Edit summary",
                    "default": DEFAULT_CREATE_SUMMARY,
                },
            },
            "required": ["title", "content"],
        },
    ),
    types.Tool(
        name=TOOL_UPDATE_PAGE,
        description="Update an existing wiki page",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title of the page to update",
                },
                "content": {
                    "type": "string",
                    "description": "New wiki content for the page",
                },
                "summary": {
                    "type": "string",
                    "description": "Edit summary",
                    "default": DEFAULT_UPDATE_SUMMARY,
                },
            },
            "required": ["title", "content"],
        },
    ),
    types.Tool(
        name=TOOL_GET_PAGE_HISTORY,
        description="Get revision history of a page",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title of the page",
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of revisions to return (default: 10)",
                    "default": DEFAULT_LIMIT,
                },
            },
            "required": ["title"],
        },
    ),
    types.Tool(
        name=TOOL_GET_CATEGORIES,
        description="Get categories a page belongs to",
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Title of the page",
                },
            },
            "required": ["title"],
        },
    ),
]
