"""
Wiki Tool Layer

MCP-callable tools over the MediaWiki client. Each tool issues one logical
operation through the client and reshapes the raw API response into its
typed output model.

Client errors are not wrapped: their messages reach the caller as-is through
the dispatcher.
"""

from __future__ import annotations

from ..wiki.api_client import MediaWikiClient
from ..wiki.models import (
    CategoriesOutcome,
    EditOutcome,
    HistoryOutcome,
    ReadOutcome,
    SearchResults,
    parse_edit_outcome,
    parse_page_categories,
    parse_page_content,
    parse_page_history,
    parse_search_results,
)
from .definitions import (
    DEFAULT_CREATE_SUMMARY,
    DEFAULT_LIMIT,
    DEFAULT_UPDATE_SUMMARY,
    MAX_SEARCH_LIMIT,
)


def clamp_search_limit(limit: int) -> int:
    return max(1, min(limit, MAX_SEARCH_LIMIT))


async def tool_search_pages(
    client: MediaWikiClient,
    query: str,
    limit: int = DEFAULT_LIMIT,
) -> SearchResults:
    """
    Keyword search (list=search).

    `limit` is clamped to 1..50 before it reaches the API.
    """
    data = await client.search_pages(query, clamp_search_limit(limit))
    return parse_search_results(data)


async def tool_read_page(client: MediaWikiClient, title: str) -> ReadOutcome:
    """
    Fetch the wikitext of the latest revision, or a PageMissing marker.
    """
    data = await client.get_page(title)
    return parse_page_content(data)


async def tool_create_page(
    client: MediaWikiClient,
    title: str,
    content: str,
    summary: str = DEFAULT_CREATE_SUMMARY,
) -> EditOutcome:
    # createonly: MediaWiki answers `articleexists` if the page is already there
    data = await client.create_page(title, content, summary)
    return parse_edit_outcome(title, data)


async def tool_update_page(
    client: MediaWikiClient,
    title: str,
    content: str,
    summary: str = DEFAULT_UPDATE_SUMMARY,
) -> EditOutcome:
    data = await client.update_page(title, content, summary)
    return parse_edit_outcome(title, data)


async def tool_get_page_history(
    client: MediaWikiClient,
    title: str,
    limit: int = DEFAULT_LIMIT,
) -> HistoryOutcome:
    data = await client.get_page_history(title, limit)
    return parse_page_history(data)


async def tool_get_categories(client: MediaWikiClient, title: str) -> CategoriesOutcome:
    data = await client.get_categories(title)
    return parse_page_categories(data)
