"""Paginated result cursors.

A :class:`PageFetcher` performs one request per page. A :class:`Cursor`
drives the fetcher lazily and is consumed either item by item
(``async for``), drained into a list (:meth:`Cursor.to_list`), or pushed
to callbacks (:meth:`Cursor.stream`). All three go through the same
``__anext__`` so they see the same items in the same order.

Pages are fetched strictly one at a time: page N+1 is requested only once
every item of page N has been handed to the consumer.
"""

import inspect
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

import structlog

from tempoiq.errors import CursorBusy, ResponseParseError, TempoIQError, UnexpectedStatusError
from tempoiq.session.base import Session

logger = structlog.get_logger()

T = TypeVar("T")

# Continuation contract: a page that has more results carries
# {"next_page": {"next_query": <body for the following request>}}.
NEXT_PAGE_FIELD = "next_page"
NEXT_QUERY_FIELD = "next_query"


@dataclass
class Page(Generic[T]):
    """One decoded page and the query for the following one (None at the end)."""
    items: list[T] = field(default_factory=list)
    next_query: dict[str, Any] | None = None

    @property
    def has_more(self) -> bool:
        return self.next_query is not None


class PageFetcher(Generic[T]):
    """Issues a single page request and decodes its items."""

    def __init__(
        self,
        session: Session,
        method: str,
        path: str,
        parse_item: Callable[[Any], T],
    ):
        self.session = session
        self.method = method
        self.path = path
        self.parse_item = parse_item

    async def fetch(self, query: dict[str, Any] | None) -> Page[T]:
        """
        Fetch and decode one page.

        Raises:
            TransportError: If the session fails
            UnexpectedStatusError: On any status other than 200
            ResponseParseError: If the page body is malformed
        """
        response = await self.session.request(self.method, self.path, query)
        if response.status_code != 200:
            raise UnexpectedStatusError(
                self.method, self.path, response.status_code, response.body
            )

        body = response.body
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise ResponseParseError(
                f"Malformed page from {self.path}: expected an object with a data list",
                source=self.path,
            )

        try:
            items = [self.parse_item(raw) for raw in body["data"]]
        except ResponseParseError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ResponseParseError(
                f"Malformed item in page from {self.path}: {e}",
                source=self.path,
                original_error=e,
            )

        page = Page(items=items, next_query=self._next_query(body))
        logger.debug(
            "Page fetched",
            path=self.path,
            items=len(items),
            has_more=page.has_more,
        )
        return page

    def _next_query(self, body: dict[str, Any]) -> dict[str, Any] | None:
        next_page = body.get(NEXT_PAGE_FIELD)
        if next_page is None:
            return None
        if not isinstance(next_page, dict) or not isinstance(
            next_page.get(NEXT_QUERY_FIELD), dict
        ):
            raise ResponseParseError(
                f"Malformed continuation from {self.path}: {next_page!r}",
                source=self.path,
            )
        return next_page[NEXT_QUERY_FIELD]


class CursorState(str, Enum):
    """Cursor lifecycle states."""
    OPEN = "open"            # More items may follow
    EXHAUSTED = "exhausted"  # Last page consumed
    FAILED = "failed"        # A page fetch raised
    CLOSED = "closed"        # Consumer stopped early


class Cursor(Generic[T]):
    """
    Lazy async iterator over a paginated result.

    Owned by a single consumer at a time. Once it reaches the end, fails, or
    is closed it yields nothing further; a fetch error is raised once and
    items delivered before it are not retracted.
    """

    def __init__(self, fetcher: PageFetcher[T], query: dict[str, Any] | None):
        self._fetcher = fetcher
        self._pending_query = query
        self._buffer: deque[T] = deque()
        self._state = CursorState.OPEN
        self._error: Exception | None = None
        self._busy = False
        self._pages_fetched = 0

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def error(self) -> Exception | None:
        """Error that aborted the cursor, if any."""
        return self._error

    @property
    def exhausted(self) -> bool:
        """True once no further items will be yielded."""
        return self._state != CursorState.OPEN and not self._buffer

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    def __aiter__(self) -> "Cursor[T]":
        return self

    async def __anext__(self) -> T:
        if self._busy:
            raise CursorBusy("Cursor is already being consumed", source=self._fetcher.path)

        self._busy = True
        try:
            while not self._buffer:
                if self._state != CursorState.OPEN:
                    raise StopAsyncIteration
                await self._fetch_next_page()
            return self._buffer.popleft()
        finally:
            self._busy = False

    async def _fetch_next_page(self) -> None:
        try:
            page = await self._fetcher.fetch(self._pending_query)
        except Exception as e:
            if isinstance(e, TempoIQError):
                error = e
            else:
                error = TempoIQError(
                    f"Page fetch failed: {e}",
                    source=self._fetcher.path,
                    original_error=e,
                )
            self._state = CursorState.FAILED
            self._error = error
            logger.warning(
                "Cursor aborted",
                path=self._fetcher.path,
                pages_fetched=self._pages_fetched,
                error=str(error),
            )
            if error is e:
                raise
            raise error from e

        self._pages_fetched += 1
        self._buffer.extend(page.items)
        self._pending_query = page.next_query
        if not page.has_more:
            self._state = CursorState.EXHAUSTED

    async def to_list(self) -> list[T]:
        """Drain every remaining item into a list."""
        return [item async for item in self]

    async def stream(
        self,
        on_data: Callable[[T], Awaitable[None] | None],
        on_end: Callable[[], Awaitable[None] | None] | None = None,
        on_error: Callable[[Exception], Awaitable[None] | None] | None = None,
    ) -> None:
        """
        Push each item to ``on_data``, then signal ``on_end`` or ``on_error``.

        Exactly one of the terminal callbacks runs. Without ``on_error`` the
        error is raised instead. Callbacks may be plain functions or
        coroutines.
        """
        try:
            async for item in self:
                await _maybe_await(on_data(item))
        except TempoIQError as e:
            if on_error is None:
                raise
            await _maybe_await(on_error(e))
            return

        if on_end is not None:
            await _maybe_await(on_end())

    async def aclose(self) -> None:
        """Stop the cursor; no further pages are requested."""
        if self._state == CursorState.OPEN:
            self._state = CursorState.CLOSED
        self._buffer.clear()
        self._pending_query = None

    async def __aenter__(self) -> "Cursor[T]":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    def __repr__(self) -> str:
        return (
            f"Cursor(path={self._fetcher.path!r}, state={self._state.value}, "
            f"pages_fetched={self._pages_fetched})"
        )


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result
