"""
Tool Output Models

Typed views over the raw MediaWiki JSON (formatversion=2) returned by each
operation. Every model defines the exact payload a tool returns; field
aliases give the camelCase keys of the tool contract.

A page flagged `missing` parses to `PageMissing`, a normal outcome rather
than an error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .api_client import ApiError, MediaWikiResponseError


MISSING_PAGE_MESSAGE = "Page does not exist"


class ToolPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with contract keys, omitting absent values."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------

class PageMissing(ToolPayload):
    title: str
    exists: Literal[False] = False
    message: str = MISSING_PAGE_MESSAGE


class SearchHit(ToolPayload):
    title: str
    snippet: Optional[str] = None
    size: Optional[int] = None
    word_count: Optional[int] = Field(default=None, alias="wordCount")
    timestamp: Optional[str] = None


class SearchResults(ToolPayload):
    total_hits: Optional[int] = Field(default=None, alias="totalHits")
    pages: List[SearchHit] = Field(default_factory=list)


class LastEdit(ToolPayload):
    timestamp: Optional[str] = None
    user: Optional[str] = None
    comment: Optional[str] = None


class PageContent(ToolPayload):
    title: str
    content: str
    last_edit: LastEdit = Field(alias="lastEdit")


class EditOutcome(ToolPayload):
    title: str
    result: Optional[str] = None
    new_rev_id: Optional[int] = Field(default=None, alias="newRevId")
    success: bool


class RevisionEntry(ToolPayload):
    id: Optional[int] = None
    timestamp: Optional[str] = None
    user: Optional[str] = None
    comment: Optional[str] = None


class PageHistory(ToolPayload):
    title: str
    revisions: List[RevisionEntry] = Field(default_factory=list)


class PageCategories(ToolPayload):
    title: str
    categories: List[str] = Field(default_factory=list)


ReadOutcome = Union[PageContent, PageMissing]
HistoryOutcome = Union[PageHistory, PageMissing]
CategoriesOutcome = Union[PageCategories, PageMissing]


# ---------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------

def _query(data: Dict[str, Any]) -> Dict[str, Any]:
    query = data.get("query")
    if not isinstance(query, dict):
        raise MediaWikiResponseError("MediaWiki API response has no 'query' section")
    return query


def _first_page(data: Dict[str, Any]) -> Dict[str, Any]:
    pages = _query(data).get("pages")
    if not isinstance(pages, list) or not pages:
        raise MediaWikiResponseError("MediaWiki API response has no pages")

    page = pages[0]
    if page.get("invalid"):
        raise ApiError("invalidtitle", page.get("invalidreason"))
    return page


def parse_search_results(data: Dict[str, Any]) -> SearchResults:
    query = _query(data)
    hits = [
        SearchHit(
            title=hit["title"],
            snippet=hit.get("snippet"),
            size=hit.get("size"),
            word_count=hit.get("wordcount"),
            timestamp=hit.get("timestamp"),
        )
        for hit in query.get("search", [])
    ]
    return SearchResults(
        total_hits=(query.get("searchinfo") or {}).get("totalhits"),
        pages=hits,
    )


def parse_page_content(data: Dict[str, Any]) -> ReadOutcome:
    page = _first_page(data)
    if page.get("missing"):
        return PageMissing(title=page["title"])

    revisions = page.get("revisions") or []
    if not revisions:
        raise MediaWikiResponseError(f"No revisions returned for '{page['title']}'")

    revision = revisions[0]
    try:
        content = revision["slots"]["main"]["content"]
    except (KeyError, TypeError) as exc:
        raise MediaWikiResponseError(
            f"Revision of '{page['title']}' has no main slot content"
        ) from exc

    return PageContent(
        title=page["title"],
        content=content,
        last_edit=LastEdit(
            timestamp=revision.get("timestamp"),
            user=revision.get("user"),
            comment=revision.get("comment"),
        ),
    )


def parse_edit_outcome(title: str, data: Dict[str, Any]) -> EditOutcome:
    edit = data.get("edit")
    if not isinstance(edit, dict):
        raise MediaWikiResponseError("MediaWiki API response has no 'edit' section")

    result = edit.get("result")
    return EditOutcome(
        title=title,
        result=result,
        new_rev_id=edit.get("newrevid"),
        success=result == "Success",
    )


def parse_page_history(data: Dict[str, Any]) -> HistoryOutcome:
    page = _first_page(data)
    if page.get("missing"):
        return PageMissing(title=page["title"])

    return PageHistory(
        title=page["title"],
        revisions=[
            RevisionEntry(
                id=rev.get("revid"),
                timestamp=rev.get("timestamp"),
                user=rev.get("user"),
                comment=rev.get("comment"),
            )
            for rev in page.get("revisions") or []
        ],
    )


def parse_page_categories(data: Dict[str, Any]) -> CategoriesOutcome:
    page = _first_page(data)
    if page.get("missing"):
        return PageMissing(title=page["title"])

    return PageCategories(
        title=page["title"],
        categories=[cat["title"] for cat in page.get("categories") or []],
    )
