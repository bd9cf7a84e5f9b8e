"""
Tool Dispatch Tests

Every tool is exercised through ToolDispatcher.dispatch against a scripted
wiki, checking the JSON text block it returns and the requests it makes.
"""

import json

import pytest

from mediawiki_mcp_server.tools.base import (
    InvalidArgumentsError,
    ToolDispatcher,
    UnknownToolError,
)
from mediawiki_mcp_server.wiki.models import PageContent, PageMissing


def payload_of(result):
    assert result.isError is not True
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    return json.loads(result.content[0].text)


def error_text(result):
    assert result.isError is True
    assert len(result.content) == 1
    return result.content[0].text


SEARCH_RESPONSE = {
    "batchcomplete": True,
    "query": {
        "searchinfo": {"totalhits": 2},
        "search": [
            {
                "ns": 0,
                "title": "Dragon",
                "pageid": 11,
                "size": 1200,
                "wordcount": 210,
                "snippet": "A <span class=\"searchmatch\">dragon</span> is",
                "timestamp": "2024-03-01T10:00:00Z",
            },
            {
                "ns": 0,
                "title": "Dragon (disambiguation)",
                "pageid": 12,
                "size": 300,
                "wordcount": 40,
                "snippet": "may refer to",
                "timestamp": "2024-02-01T10:00:00Z",
            },
        ],
    },
}

READ_RESPONSE = {
    "query": {
        "pages": [
            {
                "pageid": 11,
                "ns": 0,
                "title": "Dragon",
                "revisions": [
                    {
                        "user": "Alice",
                        "timestamp": "2024-03-01T10:00:00Z",
                        "comment": "typo",
                        "slots": {
                            "main": {
                                "contentmodel": "wikitext",
                                "contentformat": "text/x-wiki",
                                "content": "'''Dragons''' breathe fire.",
                            }
                        },
                    }
                ],
            }
        ]
    }
}

MISSING_RESPONSE = {
    "query": {"pages": [{"ns": 0, "title": "Nowhere", "missing": True}]}
}

HISTORY_RESPONSE = {
    "query": {
        "pages": [
            {
                "pageid": 11,
                "ns": 0,
                "title": "Dragon",
                "revisions": [
                    {"revid": 102, "parentid": 101, "user": "Alice", "timestamp": "2024-03-01T10:00:00Z", "comment": "typo"},
                    {"revid": 101, "parentid": 0, "user": "Bob", "timestamp": "2024-01-01T10:00:00Z", "comment": "new page"},
                ],
            }
        ]
    }
}

CATEGORIES_RESPONSE = {
    "query": {
        "pages": [
            {
                "pageid": 11,
                "ns": 0,
                "title": "Dragon",
                "categories": [
                    {"ns": 14, "title": "Category:Creatures"},
                    {"ns": 14, "title": "Category:Fire"},
                ],
            }
        ]
    }
}

EDIT_SUCCESS = {
    "edit": {
        "result": "Success",
        "pageid": 99,
        "title": "New Page",
        "contentmodel": "wikitext",
        "oldrevid": 0,
        "newrevid": 555,
        "new": True,
    }
}


@pytest.fixture
def dispatcher(client):
    return ToolDispatcher(client)


@pytest.fixture
def anonymous_dispatcher(anonymous_client):
    return ToolDispatcher(anonymous_client)


# ---------------------------------------------------------------------
# search_pages
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search_pages_reshapes_results(dispatcher, fake_wiki):
    fake_wiki.on(SEARCH_RESPONSE, action="query", list="search")

    result = await dispatcher.dispatch("search_pages", {"query": "dragon"})

    assert payload_of(result) == {
        "totalHits": 2,
        "pages": [
            {
                "title": "Dragon",
                "snippet": "A <span class=\"searchmatch\">dragon</span> is",
                "size": 1200,
                "wordCount": 210,
                "timestamp": "2024-03-01T10:00:00Z",
            },
            {
                "title": "Dragon (disambiguation)",
                "snippet": "may refer to",
                "size": 300,
                "wordCount": 40,
                "timestamp": "2024-02-01T10:00:00Z",
            },
        ],
    }
    assert fake_wiki.calls(action="query", list="search")[0]["srlimit"] == "10"


@pytest.mark.asyncio
async def test_search_pages_clamps_limit(dispatcher, fake_wiki):
    fake_wiki.on(SEARCH_RESPONSE, action="query", list="search")

    await dispatcher.dispatch("search_pages", {"query": "dragon", "limit": 1000})

    assert fake_wiki.calls(action="query", list="search")[0]["srlimit"] == "50"


@pytest.mark.asyncio
async def test_read_tools_never_log_in(dispatcher, fake_wiki):
    fake_wiki.on(SEARCH_RESPONSE, action="query", list="search")
    fake_wiki.on(READ_RESPONSE, action="query", prop="revisions")

    await dispatcher.dispatch("search_pages", {"query": "dragon"})
    await dispatcher.dispatch("read_page", {"title": "Dragon"})

    assert fake_wiki.calls(action="login") == []


@pytest.mark.asyncio
async def test_result_text_is_indented_json(dispatcher, fake_wiki):
    fake_wiki.on(SEARCH_RESPONSE, action="query", list="search")

    result = await dispatcher.dispatch("search_pages", {"query": "dragon"})

    assert result.content[0].text.startswith('{\n  "totalHits": 2,')


# ---------------------------------------------------------------------
# read_page
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_read_page_existing(dispatcher, fake_wiki):
    fake_wiki.on(READ_RESPONSE, action="query", prop="revisions")

    result = await dispatcher.dispatch("read_page", {"title": "Dragon"})

    assert payload_of(result) == {
        "title": "Dragon",
        "content": "'''Dragons''' breathe fire.",
        "lastEdit": {
            "timestamp": "2024-03-01T10:00:00Z",
            "user": "Alice",
            "comment": "typo",
        },
    }


@pytest.mark.asyncio
async def test_read_page_missing(dispatcher, fake_wiki):
    fake_wiki.on(MISSING_RESPONSE, action="query", prop="revisions")

    result = await dispatcher.dispatch("read_page", {"title": "Nowhere"})

    assert payload_of(result) == {
        "title": "Nowhere",
        "exists": False,
        "message": "Page does not exist",
    }


@pytest.mark.asyncio
async def test_invoke_returns_tagged_models(dispatcher, fake_wiki):
    fake_wiki.on(READ_RESPONSE, action="query", prop="revisions", rvslots="main")
    fake_wiki.on(MISSING_RESPONSE, action="query", prop="revisions", titles="Nowhere")

    assert isinstance(await dispatcher.invoke("read_page", {"title": "Dragon"}), PageContent)
    assert isinstance(await dispatcher.invoke("read_page", {"title": "Nowhere"}), PageMissing)


@pytest.mark.asyncio
async def test_read_page_invalid_title(dispatcher, fake_wiki):
    fake_wiki.on(
        {"query": {"pages": [{"title": "<>", "invalidreason": "The requested page title contains invalid characters", "invalid": True}]}},
        action="query",
        prop="revisions",
    )

    result = await dispatcher.dispatch("read_page", {"title": "<>"})

    assert error_text(result).startswith("Error: MediaWiki API error: invalidtitle - ")


# ---------------------------------------------------------------------
# create_page / update_page
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_page_logs_in_and_uses_token(dispatcher, fake_wiki):
    fake_wiki.on(EDIT_SUCCESS, action="edit")

    result = await dispatcher.dispatch(
        "create_page", {"title": "New Page", "content": "Hello"}
    )

    assert payload_of(result) == {
        "title": "New Page",
        "result": "Success",
        "newRevId": 555,
        "success": True,
    }

    actions = [p.get("action") for p in fake_wiki.calls()]
    assert actions == ["query", "login", "query", "edit"]

    edit = fake_wiki.calls(action="edit")[0]
    assert edit["token"] == "csrftoken456+\\"
    assert edit["createonly"] == "true"
    assert edit["summary"] == "Created via MCP"
    assert edit["text"] == "Hello"


@pytest.mark.asyncio
async def test_update_page_overwrites(dispatcher, fake_wiki):
    fake_wiki.on(EDIT_SUCCESS, action="edit")

    await dispatcher.dispatch(
        "update_page",
        {"title": "New Page", "content": "Changed", "summary": "fix"},
    )

    edit = fake_wiki.calls(action="edit")[0]
    assert "createonly" not in edit
    assert edit["summary"] == "fix"


@pytest.mark.asyncio
async def test_update_page_without_change_omits_revision(dispatcher, fake_wiki):
    fake_wiki.on(
        {"edit": {"result": "Success", "pageid": 99, "title": "New Page", "nochange": True}},
        action="edit",
    )

    result = await dispatcher.dispatch("update_page", {"title": "New Page", "content": "Same"})

    assert payload_of(result) == {"title": "New Page", "result": "Success", "success": True}


@pytest.mark.asyncio
async def test_edit_token_is_reused_across_writes(dispatcher, fake_wiki):
    fake_wiki.on(EDIT_SUCCESS, action="edit")

    await dispatcher.dispatch("create_page", {"title": "A", "content": "a"})
    await dispatcher.dispatch("update_page", {"title": "A", "content": "b"})

    assert len(fake_wiki.calls(action="query", meta="tokens")) == 2  # login token + csrf token
    assert len(fake_wiki.calls(action="login")) == 1


@pytest.mark.asyncio
async def test_anonymous_write_still_reaches_the_api(anonymous_dispatcher, fake_wiki):
    fake_wiki.on(EDIT_SUCCESS, action="edit")

    result = await anonymous_dispatcher.dispatch(
        "update_page", {"title": "New Page", "content": "Hello"}
    )

    assert payload_of(result)["success"] is True
    assert fake_wiki.calls(action="login") == []
    assert len(fake_wiki.calls(action="edit")) == 1


@pytest.mark.asyncio
async def test_badtoken_becomes_error_result(dispatcher, fake_wiki):
    fake_wiki.on(
        {"error": {"code": "badtoken", "info": "Invalid CSRF token."}},
        action="edit",
    )

    result = await dispatcher.dispatch("update_page", {"title": "A", "content": "b"})

    assert error_text(result) == "Error: MediaWiki API error: badtoken - Invalid CSRF token."


@pytest.mark.asyncio
async def test_rejected_login_fails_write_tools(dispatcher, fake_wiki):
    fake_wiki.on({"login": {"result": "Failed", "reason": "bad password"}}, action="login")

    result = await dispatcher.dispatch("create_page", {"title": "A", "content": "b"})

    assert error_text(result) == "Error: Login failed: bad password"
    assert fake_wiki.calls(action="edit") == []


# ---------------------------------------------------------------------
# get_page_history / get_categories
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_page_history(dispatcher, fake_wiki):
    fake_wiki.on(HISTORY_RESPONSE, action="query", prop="revisions")

    result = await dispatcher.dispatch("get_page_history", {"title": "Dragon", "limit": 2})

    assert payload_of(result) == {
        "title": "Dragon",
        "revisions": [
            {"id": 102, "timestamp": "2024-03-01T10:00:00Z", "user": "Alice", "comment": "typo"},
            {"id": 101, "timestamp": "2024-01-01T10:00:00Z", "user": "Bob", "comment": "new page"},
        ],
    }
    history_call = fake_wiki.calls(action="query", prop="revisions")[0]
    assert history_call["rvlimit"] == "2"
    assert history_call["rvprop"] == "timestamp|user|comment|ids"
    assert len(fake_wiki.calls(action="login")) == 1


@pytest.mark.asyncio
async def test_get_page_history_missing(dispatcher, fake_wiki):
    fake_wiki.on(MISSING_RESPONSE, action="query", prop="revisions")

    result = await dispatcher.dispatch("get_page_history", {"title": "Nowhere"})

    assert payload_of(result)["exists"] is False


@pytest.mark.asyncio
async def test_get_categories(dispatcher, fake_wiki):
    fake_wiki.on(CATEGORIES_RESPONSE, action="query", prop="categories")

    result = await dispatcher.dispatch("get_categories", {"title": "Dragon"})

    assert payload_of(result) == {
        "title": "Dragon",
        "categories": ["Category:Creatures", "Category:Fire"],
    }
    assert fake_wiki.calls(action="query", prop="categories")[0]["cllimit"] == "max"


@pytest.mark.asyncio
async def test_get_categories_for_uncategorized_page(dispatcher, fake_wiki):
    fake_wiki.on(
        {"query": {"pages": [{"pageid": 3, "ns": 0, "title": "Plain"}]}},
        action="query",
        prop="categories",
    )

    result = await dispatcher.dispatch("get_categories", {"title": "Plain"})

    assert payload_of(result) == {"title": "Plain", "categories": []}


@pytest.mark.asyncio
async def test_get_categories_missing(dispatcher, fake_wiki):
    fake_wiki.on(MISSING_RESPONSE, action="query", prop="categories")

    result = await dispatcher.dispatch("get_categories", {"title": "Nowhere"})

    assert payload_of(result) == {
        "title": "Nowhere",
        "exists": False,
        "message": "Page does not exist",
    }


# ---------------------------------------------------------------------
# Argument and name validation
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_missing_arguments(dispatcher, fake_wiki):
    result = await dispatcher.dispatch("read_page", None)

    assert error_text(result) == "Error: Arguments are required"
    assert fake_wiki.requests == []


@pytest.mark.asyncio
async def test_missing_required_field(dispatcher):
    result = await dispatcher.dispatch("read_page", {})

    assert error_text(result) == "Error: read_page requires 'title' argument."


@pytest.mark.asyncio
async def test_non_numeric_limit(dispatcher):
    result = await dispatcher.dispatch("search_pages", {"query": "x", "limit": "lots"})

    assert error_text(result) == "Error: search_pages 'limit' must be a number."


@pytest.mark.asyncio
async def test_unknown_tool(dispatcher, fake_wiki):
    result = await dispatcher.dispatch("delete_page", {"title": "A"})

    assert error_text(result) == "Error: Unknown tool: delete_page"
    assert fake_wiki.requests == []


@pytest.mark.asyncio
async def test_invoke_raises_typed_errors(dispatcher):
    with pytest.raises(InvalidArgumentsError):
        await dispatcher.invoke("read_page", None)

    with pytest.raises(UnknownToolError):
        await dispatcher.invoke("nope", {})
