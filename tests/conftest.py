import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl

import httpx
import pytest

from mediawiki_mcp_server.wiki.api_client import MediaWikiClient
from mediawiki_mcp_server.wiki.session import Credentials


API_URL = "https://wiki.example.org/w/api.php"


def request_params(request: httpx.Request) -> Dict[str, str]:
    """Return the MediaWiki parameters of a request, GET or POST."""
    if request.method == "GET":
        return dict(request.url.params)
    return dict(parse_qsl(request.content.decode()))


class FakeWiki:
    """
    Scripted MediaWiki endpoint, used as an httpx.MockTransport handler.

    Responses are matched on request parameters. The most specific match
    wins; among equally specific matches the most recently registered one
    wins, so tests can override the defaults.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.delay: float = 0.0
        self._routes: List[Tuple[Dict[str, str], Any, Sequence[Tuple[str, str]]]] = []

    def on(self, body: Any, headers: Optional[Sequence[Tuple[str, str]]] = None, **match: str) -> None:
        self._routes.append((match, body, headers or []))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)

        params = request_params(request)
        candidates = [
            (len(match), index, body, headers)
            for index, (match, body, headers) in enumerate(self._routes)
            if all(params.get(k) == v for k, v in match.items())
        ]
        if not candidates:
            return httpx.Response(
                200,
                json={"error": {"code": "unmatched", "info": repr(params)}},
            )

        _, _, body, headers = max(candidates, key=lambda c: (c[0], c[1]))
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body, headers=list(headers))

    def calls(self, **match: str) -> List[Dict[str, str]]:
        """Parameters of every recorded request matching `match`."""
        found = []
        for request in self.requests:
            params = request_params(request)
            if all(params.get(k) == v for k, v in match.items()):
                found.append(params)
        return found


@pytest.fixture
def fake_wiki() -> FakeWiki:
    wiki = FakeWiki()
    wiki.on(
        {"query": {"tokens": {"logintoken": "logintoken123+\\"}}},
        action="query",
        meta="tokens",
        type="login",
    )
    wiki.on(
        {"login": {"result": "Success", "lguserid": 7, "lgusername": "Bot"}},
        action="login",
    )
    wiki.on(
        {"query": {"tokens": {"csrftoken": "csrftoken456+\\"}}},
        action="query",
        meta="tokens",
    )
    return wiki


@pytest.fixture
def client(fake_wiki: FakeWiki) -> MediaWikiClient:
    return MediaWikiClient(
        API_URL,
        Credentials(username="Bot", password="hunter2"),
        transport=httpx.MockTransport(fake_wiki),
    )


@pytest.fixture
def anonymous_client(fake_wiki: FakeWiki) -> MediaWikiClient:
    return MediaWikiClient(API_URL, transport=httpx.MockTransport(fake_wiki))
