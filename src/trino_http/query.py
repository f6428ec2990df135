from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Iterator, List, Optional, TypeVar

from trino_http.auth.retry import CommandType
from trino_http.common.http import HttpMethod
from trino_http.exc import Error, IllegalStateError, ServerOperationError
from trino_http.fetcher import PageFetcher
from trino_http.models import Column, Page, Row

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryHandleState(Enum):
    """
    Client-side lifecycle of a query handle.

    Attributes:
        FRESH: Holds the page returned by submission, not yet handed out
        ACTIVE: Has a live continuation URI
        DONE: The final page was handed out
        CLOSED: Closed by the caller; no further requests are issued
        FAILED: A page carrying a server error was handed out
    """

    FRESH = "FRESH"
    ACTIVE = "ACTIVE"
    DONE = "DONE"
    CLOSED = "CLOSED"
    FAILED = "FAILED"

    def is_terminal(self) -> bool:
        return self in (
            QueryHandleState.DONE,
            QueryHandleState.CLOSED,
            QueryHandleState.FAILED,
        )


class Query:
    """
    Handle on one submitted query: a pull-based iterator over its result pages.

    Each call to `next()` is one suspension point that may issue network
    requests. A failed query is not an exception here: the page that reports
    the failure is returned like any other page, with `error` set.

    A handle must not be advanced from several threads at once, but `close()`
    may be called from any thread at any time.
    """

    def __init__(self, fetcher: PageFetcher, first_page: Page):
        """
        Args:
            fetcher: Page fetch loop bound to the owning client's session
            first_page: The page returned by statement submission
        """
        self._fetcher = fetcher
        self._first_page: Optional[Page] = first_page
        self._lock = threading.Lock()

        self.query_id = first_page.id
        self.info_uri = first_page.info_uri
        self._state = QueryHandleState.FRESH
        self._current_uri = first_page.next_uri
        self._columns = first_page.columns
        self.last_page: Optional[Page] = None

    @property
    def state(self) -> QueryHandleState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal()

    @property
    def current_uri(self) -> Optional[str]:
        return self._current_uri

    @property
    def columns(self) -> Optional[List[Column]]:
        """Result columns, once the server has described them."""
        return self._columns

    def _check_not_terminal(self):
        if self._state == QueryHandleState.CLOSED:
            raise IllegalStateError(
                "Query {} has been closed".format(self.query_id),
                {"query-id": self.query_id},
            )
        if self._state.is_terminal():
            raise IllegalStateError(
                "Query {} has no more pages ({})".format(
                    self.query_id, self._state.value
                ),
                {"query-id": self.query_id, "state": self._state.value},
            )

    def _transition(self, new_state: QueryHandleState):
        logger.debug(
            "Query %s: %s -> %s", self.query_id, self._state.value, new_state.value
        )
        self._state = new_state

    def _advance(self, page: Page):
        """Record a handed-out page and move to the state it implies. Caller holds the lock."""
        self.last_page = page
        if self._columns is None and page.columns is not None:
            self._columns = page.columns

        if page.error is not None:
            self._current_uri = None
            self._transition(QueryHandleState.FAILED)
        elif not page.next_uri:
            self._current_uri = None
            self._transition(QueryHandleState.DONE)
        else:
            self._current_uri = page.next_uri
            if self._state != QueryHandleState.ACTIVE:
                self._transition(QueryHandleState.ACTIVE)

    def _on_waiting_page(self, page: Page):
        with self._lock:
            if self._state == QueryHandleState.ACTIVE:
                self._current_uri = page.next_uri
                if self._columns is None and page.columns is not None:
                    self._columns = page.columns

    def next(self) -> Page:
        """
        Return the next page of the query.

        The first call returns the page produced by submission without any
        network activity. Later calls poll the current continuation URI.

        Returns:
            Page: a page carrying data, the terminal page carrying a server
            error, or the final (possibly empty) page

        Raises:
            IllegalStateError: If the handle is closed or already terminal
            TransportError: If the server could not be reached
            ProtocolError: If the server answered with something that is not a page
            QueryTimeoutError: If no page arrived within the polling ceiling
        """
        with self._lock:
            self._check_not_terminal()
            if self._state == QueryHandleState.FRESH:
                page = self._first_page
                self._first_page = None
                self._advance(page)
                return page
            uri = self._current_uri

        page = self._fetcher.poll(uri, on_page=self._on_waiting_page)

        with self._lock:
            if self._state == QueryHandleState.CLOSED:
                logger.debug(
                    "Query %s was closed while a page was in flight", self.query_id
                )
                self.last_page = page
                return page
            self._advance(page)
        return page

    def fold(
        self,
        seed: T,
        reducer: Callable[[Page, T], T],
        raise_on_error: bool = False,
    ) -> T:
        """
        Drive the query to completion, reducing every page in arrival order.

        The reducer sees every page including the terminal one. A failed query
        completes the fold normally and its error is only visible to the
        reducer, unless `raise_on_error` is set, in which case a
        ServerOperationError is raised once the failed page has been reduced.

        Example:
            rows = query.fold([], lambda page, acc: acc + (page.data or []))
        """
        if self._state == QueryHandleState.CLOSED:
            self._check_not_terminal()

        accumulator = seed
        while not self.is_terminal:
            accumulator = reducer(self.next(), accumulator)

        if raise_on_error and self._state == QueryHandleState.FAILED:
            raise self._server_operation_error()
        return accumulator

    def _server_operation_error(self) -> ServerOperationError:
        error = self.last_page.error if self.last_page else None
        return ServerOperationError(
            "Query {} failed: {}".format(
                self.query_id, error.message if error else "unknown error"
            ),
            {
                "query-id": self.query_id,
                "error-code": error.error_code if error else None,
                "error-name": error.error_name if error else None,
            },
        )

    def __iter__(self) -> Iterator[Page]:
        while not self.is_terminal:
            yield self.next()

    def rows(self) -> Iterator[Row]:
        """Yield result rows, raising ServerOperationError if the query failed."""
        for page in self:
            if page.error is not None:
                raise self._server_operation_error()
            yield from page.data or []

    def close(self) -> None:
        """
        Abandon the query.

        No-op for a handle that is already terminal. Otherwise the handle is
        closed immediately and a best-effort DELETE is sent to the current
        continuation URI, which makes the server fail the query. Transport
        failures are logged and never raised.
        """
        with self._lock:
            if self._state.is_terminal():
                return
            uri = self._current_uri
            self._current_uri = None
            self._first_page = None
            self._transition(QueryHandleState.CLOSED)

        if not uri:
            return

        try:
            response = self._fetcher.request(
                HttpMethod.DELETE, uri, command_type=CommandType.ABANDON_QUERY
            )
            if not response.ok:
                logger.debug(
                    "Server answered %s when abandoning query %s",
                    response.status,
                    self.query_id,
                )
        except Error as e:
            logger.warning("Failed to abandon query %s: %s", self.query_id, e)

    def __enter__(self) -> "Query":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self) -> str:
        return "Query(query_id={!r}, state={})".format(
            self.query_id, self._state.value
        )
