import logging
import time
from typing import Callable, Optional

from trino_http.auth.retry import CommandType
from trino_http.common.http import HttpHeader, HttpMethod, HttpResponse
from trino_http.common.http_client import TrinoHttpClient
from trino_http.constants import (
    DEFAULT_POLL_DELAY_MAX,
    DEFAULT_POLL_DELAY_MIN,
    DEFAULT_POLL_TIMEOUT,
)
from trino_http.exc import QueryTimeoutError, TransportError
from trino_http.models import Page
from trino_http.session import ClientSession

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Fetches result pages on behalf of query handles.

    Every request carries the headers of the shared ClientSession and every
    response's headers are merged back into it before the page is returned,
    so session changes become visible to the next request of any query.
    """

    def __init__(
        self,
        http_client: TrinoHttpClient,
        session: ClientSession,
        poll_delay_min: float = DEFAULT_POLL_DELAY_MIN,
        poll_delay_max: float = DEFAULT_POLL_DELAY_MAX,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
    ):
        """
        Args:
            http_client: Transport used for every request
            session: Session state echoed on requests and updated from responses
            poll_delay_min: Seconds to wait before the first re-poll of a waiting query
            poll_delay_max: Upper bound of the exponential re-poll delay
            poll_timeout: Maximum seconds a single poll() call may spend waiting
        """
        self.http_client = http_client
        self.session = session
        self.poll_delay_min = poll_delay_min
        self.poll_delay_max = poll_delay_max
        self.poll_timeout = poll_timeout

    def request(
        self,
        method: HttpMethod,
        url: str,
        body: Optional[bytes] = None,
        command_type: CommandType = CommandType.OTHER,
    ) -> HttpResponse:
        """Issue one request with the session's headers and merge the response headers."""
        headers = self.session.build_request_headers()
        if body is not None:
            headers[HttpHeader.CONTENT_TYPE.value] = "text/plain; charset=utf-8"

        response = self.http_client.request(
            method, url, headers=headers, body=body, command_type=command_type
        )
        self.session.apply_response_headers(response.headers)
        return response

    def fetch(
        self,
        method: HttpMethod,
        url: str,
        body: Optional[bytes] = None,
        command_type: CommandType = CommandType.FETCH_PAGE,
    ) -> Page:
        """
        Fetch exactly one page, without polling.

        Raises:
            TransportError: If the request failed or the server answered non-2xx
            ProtocolError: If the body is not a result page
        """
        response = self.request(method, url, body=body, command_type=command_type)
        if not response.ok:
            raise TransportError(
                f"Request for result page failed with status {response.status}",
                {
                    "method": method.value,
                    "url": url,
                    "http-code": response.status,
                    "error-message": response.error_message(),
                },
            )
        return Page.from_dict(response.json("result page"))

    def poll(
        self, uri: str, on_page: Optional[Callable[[Page], None]] = None
    ) -> Page:
        """
        Follow continuation URIs from `uri` until a page worth returning arrives.

        Pages that only report a queued or running query (no data, no error, a
        continuation URI) are not returned; the loop waits with a bounded
        exponential backoff and follows their continuation instead. The returned
        page therefore carries data, carries an error, or is the final page.

        Args:
            uri: Continuation URI to start from
            on_page: Called with every waiting page that is skipped, so the caller
                can keep its cursor on the freshest continuation URI

        Raises:
            QueryTimeoutError: If waiting would exceed `poll_timeout` seconds
        """
        started = time.monotonic()
        delay = self.poll_delay_min

        page = self.fetch(HttpMethod.GET, uri)
        while page.is_waiting:
            if on_page is not None:
                on_page(page)

            elapsed = time.monotonic() - started
            if elapsed + delay > self.poll_timeout:
                raise QueryTimeoutError(
                    f"Query {page.id} produced no page within {self.poll_timeout} seconds",
                    {
                        "query-id": page.id,
                        "next-uri": page.next_uri,
                        "elapsed-seconds": elapsed,
                    },
                )

            logger.debug(
                "Query %s is %s, polling again in %ss",
                page.id,
                page.stats.state.value if page.stats.state else "waiting",
                delay,
            )
            time.sleep(delay)
            delay = min(delay * 2, self.poll_delay_max)
            page = self.fetch(HttpMethod.GET, page.next_uri)

        return page
