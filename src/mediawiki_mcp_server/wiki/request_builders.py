"""
MediaWiki Request Builders

One builder per logical operation. Each returns an `ApiRequest` holding the
exact `action=...` parameter mapping and the HTTP method: GET for pure reads,
POST for anything that mutates state or carries a token.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Union


HttpMethod = Literal["GET", "POST"]
ParamValue = Union[str, int, float, bool, None]

# Added to every request
COMMON_PARAMS: Dict[str, str] = {
    "format": "json",
    "formatversion": "2",
}


@dataclass(frozen=True)
class ApiRequest:
    params: Dict[str, ParamValue]
    method: HttpMethod = "GET"


def encode_params(params: Mapping[str, ParamValue]) -> Dict[str, str]:
    """
    Render a parameter mapping as wire strings.

    `None` and `False` are dropped (MediaWiki treats the mere presence of a
    boolean parameter as true); `True` becomes "true".
    """
    wire: Dict[str, str] = {}
    for key, value in params.items():
        if value is None or value is False:
            continue
        if value is True:
            wire[key] = "true"
        else:
            wire[key] = str(value)
    wire.update(COMMON_PARAMS)
    return wire


# ---------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------

def login_token_request() -> ApiRequest:
    return ApiRequest({"action": "query", "meta": "tokens", "type": "login"})


def login_request(username: str, password: str, login_token: str) -> ApiRequest:
    return ApiRequest(
        {
            "action": "login",
            "lgname": username,
            "lgpassword": password,
            "lgtoken": login_token,
        },
        method="POST",
    )


def csrf_token_request() -> ApiRequest:
    return ApiRequest({"action": "query", "meta": "tokens"})


# ---------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------

def search_request(query: str, limit: int) -> ApiRequest:
    return ApiRequest(
        {
            "action": "query",
            "list": "search",
            "srsearch": query,
            "srlimit": limit,
            "srinfo": "totalhits",
            "srprop": "size|wordcount|timestamp|snippet",
        }
    )


def read_request(title: str) -> ApiRequest:
    return ApiRequest(
        {
            "action": "query",
            "prop": "revisions",
            "titles": title,
            "rvprop": "content|timestamp|user|comment",
            "rvslots": "main",
        }
    )


def history_request(title: str, limit: int) -> ApiRequest:
    return ApiRequest(
        {
            "action": "query",
            "prop": "revisions",
            "titles": title,
            "rvprop": "timestamp|user|comment|ids",
            "rvlimit": limit,
        }
    )


def categories_request(title: str) -> ApiRequest:
    return ApiRequest(
        {
            "action": "query",
            "prop": "categories",
            "titles": title,
            "cllimit": "max",
        }
    )


# ---------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------

def edit_request(
    title: str,
    text: str,
    summary: str,
    token: str,
    create_only: bool = False,
) -> ApiRequest:
    params: Dict[str, Any] = {
        "action": "edit",
        "title": title,
        "text": text,
        "summary": summary,
        "token": token,
    }
    if create_only:
        params["createonly"] = True
    return ApiRequest(params, method="POST")
