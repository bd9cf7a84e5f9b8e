"""
MediaWiki API Client

Session-aware client for the MediaWiki action API. It owns the session
state for one wiki: cookie jar, login flag and cached CSRF token.

Behavior
--------
- `call()` is the single transport primitive. Every other method goes
  through it.
- Login is the documented two-step flow (login token, then credentials) and
  happens at most once per process unless `reset()` is called.
- The edit token is fetched once and reused. It is never invalidated on
  failure.
- Concurrent first callers of `login()` / `get_edit_token()` share a single
  in-flight round trip.
- No retries and no backoff.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..config import DEFAULT_USER_AGENT, Settings
from .request_builders import (
    ApiRequest,
    HttpMethod,
    ParamValue,
    categories_request,
    csrf_token_request,
    edit_request,
    encode_params,
    history_request,
    login_request,
    login_token_request,
    read_request,
    search_request,
)
from .session import Credentials, SessionState, SingleFlight

logger = logging.getLogger("mcp.wiki")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class MediaWikiClientError(RuntimeError):
    """Base exception for MediaWiki client failures."""


class MediaWikiRequestError(MediaWikiClientError):
    """Raised when the HTTP request itself fails (connection, timeout...)."""


class MediaWikiResponseError(MediaWikiClientError):
    """Raised when the response body is not the JSON structure expected."""


class ApiError(MediaWikiClientError):
    """Raised when the MediaWiki API answers with an `error` object."""

    def __init__(self, code: Optional[str], info: Optional[str]) -> None:
        self.code = code
        self.info = info
        super().__init__(f"MediaWiki API error: {code} - {info}")


class AuthError(MediaWikiClientError):
    """Raised when the remote login step does not report success."""

    def __init__(self, reason: Any) -> None:
        self.reason = reason
        super().__init__(f"Login failed: {reason}")


# ---------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------

class MediaWikiClient:
    def __init__(
        self,
        api_url: str,
        credentials: Optional[Credentials] = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Parameters
        ----------
        api_url : str
            Full URL of the wiki's `api.php` endpoint.

        credentials : Optional[Credentials]
            Login credentials. Without them the client works anonymously.

        user_agent : str
            Value of the User-Agent header sent with every request.

        timeout : float
            Per-request HTTP timeout in seconds.

        transport : Optional[httpx.AsyncBaseTransport]
            Optional transport override (tests use `httpx.MockTransport`).
        """
        self.api_url = api_url
        self._credentials = credentials
        self._user_agent = user_agent
        self._timeout = timeout
        self._transport = transport

        self._session = SessionState()
        self._login_flight: SingleFlight[bool] = SingleFlight()
        self._token_flight: SingleFlight[str] = SingleFlight()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "MediaWikiClient":
        credentials = None
        if settings.has_credentials:
            credentials = Credentials(
                username=settings.mediawiki_username,
                password=settings.mediawiki_password,
            )
        return cls(
            settings.api_url,
            credentials,
            user_agent=settings.mediawiki_user_agent,
            timeout=settings.mediawiki_timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def has_credentials(self) -> bool:
        return self._credentials is not None

    @property
    def username(self) -> Optional[str]:
        return self._credentials.username if self._credentials else None

    @property
    def logged_in(self) -> bool:
        return self._session.logged_in

    @property
    def cookies(self) -> list[str]:
        return list(self._session.cookies)

    def reset(self) -> None:
        """
        Forget login state, cached edit token and cookies.

        A login or token fetch still in flight completes for its waiters but
        does not mark the reset session as logged in or cache its token.
        """
        self._session.reset()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def call(
        self,
        params: Mapping[str, ParamValue],
        method: HttpMethod = "GET",
    ) -> Dict[str, Any]:
        """
        Execute one MediaWiki API request.

        The session cookies are sent verbatim. GET requests carry the
        parameters in the query string, POST requests as a form body.

        Returns
        -------
        Dict[str, Any]
            The parsed JSON body, unchanged.

        Raises
        ------
        MediaWikiRequestError
            If the HTTP exchange fails.

        MediaWikiResponseError
            If the body is not a JSON object.

        ApiError
            If the body contains an `error` object.
        """
        wire = encode_params(params)

        headers = {"User-Agent": self._user_agent}
        cookie_header = self._session.cookie_header()
        if cookie_header:
            headers["Cookie"] = cookie_header

        logger.debug("MediaWiki %s action=%s", method, wire.get("action"))

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                if method == "GET":
                    resp = await client.get(self.api_url, params=wire, headers=headers)
                else:
                    resp = await client.post(self.api_url, data=wire, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("MediaWiki request failed: %s", type(exc).__name__)
            raise MediaWikiRequestError(
                f"Request to MediaWiki API failed: {type(exc).__name__}: {exc}"
            ) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise MediaWikiResponseError(
                f"MediaWiki API returned a non-JSON response (HTTP {resp.status_code})"
            ) from exc

        if not isinstance(data, dict):
            raise MediaWikiResponseError("MediaWiki API returned an unexpected JSON value")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise ApiError(error.get("code"), error.get("info"))
            raise ApiError(None, str(error))

        for raw_cookie in resp.headers.get_list("set-cookie"):
            self._session.add_cookie(raw_cookie)

        return data

    async def _execute(self, request: ApiRequest) -> Dict[str, Any]:
        return await self.call(request.params, request.method)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self) -> bool:
        """
        Log in with the configured credentials.

        Returns
        -------
        bool
            False without a network call when no credentials are configured
            (anonymous mode); True once logged in.

        Raises
        ------
        AuthError
            If MediaWiki rejects the credentials.
        """
        credentials = self._credentials
        if credentials is None:
            return False

        if self._session.logged_in:
            return True

        return await self._login_flight.run(
            lambda: self._perform_login(credentials)
        )

    async def _perform_login(self, credentials: Credentials) -> bool:
        if self._session.logged_in:
            return True

        generation = self._session.generation

        token_data = await self._execute(login_token_request())
        login_token = _extract_token(token_data, "logintoken")

        data = await self._execute(
            login_request(
                credentials.username,
                credentials.password.get_secret_value(),
                login_token,
            )
        )

        result = data.get("login") or {}
        if result.get("result") != "Success":
            logger.warning("Login rejected for user %s", credentials.username)
            raise AuthError(result.get("reason"))

        if self._session.generation != generation:
            logger.info("Session was reset during login; discarding the result")
            return False

        self._session.logged_in = True
        logger.info("Logged in to MediaWiki as %s", credentials.username)
        return True

    async def get_edit_token(self) -> str:
        """
        Return the CSRF token for write calls, fetching it on first use.
        """
        if self._session.edit_token is not None:
            return self._session.edit_token

        return await self._token_flight.run(self._fetch_edit_token)

    async def _fetch_edit_token(self) -> str:
        if self._session.edit_token is not None:
            return self._session.edit_token

        generation = self._session.generation
        data = await self._execute(csrf_token_request())
        token = _extract_token(data, "csrftoken")
        if self._session.generation == generation:
            self._session.edit_token = token
        return token

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def search_pages(self, query: str, limit: int = 10) -> Dict[str, Any]:
        return await self._execute(search_request(query, limit))

    async def get_page(self, title: str) -> Dict[str, Any]:
        return await self._execute(read_request(title))

    async def create_page(self, title: str, content: str, summary: str = "") -> Dict[str, Any]:
        token = await self.get_edit_token()
        return await self._execute(
            edit_request(title, content, summary, token, create_only=True)
        )

    async def update_page(self, title: str, content: str, summary: str = "") -> Dict[str, Any]:
        token = await self.get_edit_token()
        return await self._execute(edit_request(title, content, summary, token))

    async def get_page_history(self, title: str, limit: int = 10) -> Dict[str, Any]:
        return await self._execute(history_request(title, limit))

    async def get_categories(self, title: str) -> Dict[str, Any]:
        return await self._execute(categories_request(title))


def _extract_token(data: Dict[str, Any], name: str) -> str:
    try:
        token = data["query"]["tokens"][name]
    except (KeyError, TypeError) as exc:
        raise MediaWikiResponseError(
            f"MediaWiki API response did not contain a {name}"
        ) from exc
    if not isinstance(token, str) or not token:
        raise MediaWikiResponseError(f"MediaWiki API returned an empty {name}")
    return token
