"""
Wiki Session State

Process-lifetime state for one MediaWiki API client: credentials, login flag,
cached CSRF token and the accumulated cookie jar. Nothing here is persisted.

The single-flight helper lets concurrent callers of a lazy network fetch
(login, token fetch) share one in-flight round trip instead of issuing
duplicates.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, SecretStr


T = TypeVar("T")


class Credentials(BaseModel):
    """
    Username/password pair used for the two-step MediaWiki login.
    """

    username: str = Field(..., min_length=1)
    password: SecretStr

    model_config = ConfigDict(frozen=True, extra="forbid")


@dataclass
class SessionState:
    """
    Mutable session state owned by exactly one MediaWikiClient.

    Cookies are raw `Set-Cookie` values kept in the order received. They are
    never deduplicated or replaced.
    """

    logged_in: bool = False
    edit_token: Optional[str] = None
    cookies: List[str] = field(default_factory=list)
    # bumped by reset(); a round trip started under an older generation
    # must not write its result back
    generation: int = 0

    def add_cookie(self, raw: str) -> None:
        self.cookies.append(raw)

    def cookie_header(self) -> Optional[str]:
        if not self.cookies:
            return None
        return "; ".join(self.cookies)

    def reset(self) -> None:
        self.logged_in = False
        self.edit_token = None
        self.cookies.clear()
        self.generation += 1


class SingleFlight(Generic[T]):
    """
    Run a coroutine factory at most once at a time.

    The first caller starts the work as a task; callers arriving before it
    finishes await the same task. The slot is cleared once the task is done,
    so a failed attempt can be retried by a later explicit call.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task[T]] = None

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            task = self._task
            if task is None:
                task = asyncio.ensure_future(factory())
                task.add_done_callback(self._clear)
                self._task = task

        # shield: a cancelled waiter must not cancel the shared round trip
        return await asyncio.shield(task)

    def _clear(self, task: "asyncio.Future[T]") -> None:
        if self._task is task:
            self._task = None
        # retrieve the outcome so an unawaited failure is not reported by asyncio
        if not task.cancelled():
            task.exception()
