import logging
import urllib.parse
from typing import Dict, List, Optional

from trino_http.auth.auth import get_auth_provider
from trino_http.auth.retry import CommandType
from trino_http.common.context import build_client_context
from trino_http.common.http import HttpMethod, HttpResponse
from trino_http.common.http_client import TrinoHttpClient
from trino_http.constants import (
    DEFAULT_SERVER,
    DEFAULT_SOURCE,
    QUERY_PATH_WITH_ID,
    STATEMENT_PATH,
)
from trino_http.exc import InterfaceError, NotFoundError, TransportError
from trino_http.fetcher import PageFetcher
from trino_http.models import QueryInfo
from trino_http.query import Query
from trino_http.session import ClientSession

logger = logging.getLogger(__name__)


def normalize_server(server: str) -> str:
    maybe_scheme = "" if "://" in server else "http://"
    return f"{maybe_scheme}{server}".rstrip("/")


class Trino:
    def __init__(
        self,
        server: str = DEFAULT_SERVER,
        user: Optional[str] = None,
        source: str = DEFAULT_SOURCE,
        catalog: Optional[str] = None,
        schema: Optional[str] = None,
        session_properties: Optional[Dict[str, str]] = None,
        extra_credential: Optional[Dict[str, str]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
        client_tags: Optional[List[str]] = None,
        timezone: Optional[str] = None,
        roles: Optional[Dict[str, str]] = None,
        path: Optional[str] = None,
        transactional: bool = False,
        http_client: Optional[TrinoHttpClient] = None,
        **kwargs,
    ) -> None:
        """
        Client for the statement protocol of a Trino coordinator.

        Parameters:
            :param server: Base URL of the coordinator, e.g. https://trino.example.com:8443.
                A bare host name is treated as plain http.
            :param user: User queries run as. Defaults to the basic auth username or "trino".
            :param source: Source name reported to the server.
            :param catalog: Initial default catalog.
            :param schema: Initial default schema.
            :param session_properties: Initial session properties.
            :param extra_credential: Extra credentials passed through to connectors.
            :param extra_headers: Additional headers sent with every request.
            :param client_tags: Tags used by resource group selection.
            :param timezone: Session time zone id.
            :param roles: Catalog name to role mapping.
            :param path: Initial SQL path.
            :param transactional: Advertise transaction support so that START TRANSACTION
                is accepted. The session then carries the open transaction id.
            :param http_client: Pre-built transport. When omitted one is created and
                owned (and closed) by this client.

        Authentication, one of:
            :param auth: An `AuthProvider` instance, e.g. `BasicAuthProvider("test")`.
            :param username: Basic authentication username, optionally with `password`.
            :param access_token: JWT bearer token.
            :param credentials_provider: A `CredentialsProvider` producing request headers.

        Other parameters:
            ssl_options: `SSLOptions` for https servers.
            socket_timeout: Connect and read timeout in seconds.
            user_agent_entry: Appended to the User-Agent header.
            _retry_delay_min, _retry_delay_max, _retry_stop_after_attempts_count,
            _retry_stop_after_attempts_duration, _retry_dangerous_codes:
                Transport retry policy, see `TrinoRetryPolicy`.
            _poll_delay_min, _poll_delay_max, _poll_timeout:
                Backoff and ceiling of the page polling loop, in seconds.
            _pool_connections, _pool_maxsize: Connection pool sizing.
        """

        self.server = normalize_server(server)
        self._client_context = build_client_context(self.server, **kwargs)

        self._owns_http_client = http_client is None
        self.http_client = http_client or TrinoHttpClient(self._client_context)

        auth_provider = get_auth_provider(**kwargs)
        self.session = ClientSession(
            user=user,
            auth_provider=auth_provider,
            source=source,
            catalog=catalog,
            schema=schema,
            path=path,
            properties=session_properties,
            roles=roles,
            client_tags=client_tags,
            timezone=timezone,
            extra_credential=extra_credential,
            extra_headers=extra_headers,
            transactional=transactional,
        )
        self._fetcher = PageFetcher(
            self.http_client,
            self.session,
            poll_delay_min=self._client_context.poll_delay_min,
            poll_delay_max=self._client_context.poll_delay_max,
            poll_timeout=self._client_context.poll_timeout,
        )
        self.open = True

        logger.debug(
            "Trino client created for %s as user %s", self.server, self.session.user
        )

    def __enter__(self) -> "Trino":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _check_open(self):
        if not self.open:
            raise InterfaceError("Cannot use a closed client", {"server": self.server})

    def _query_url(self, query_id: str) -> str:
        return self.server + QUERY_PATH_WITH_ID.format(
            urllib.parse.quote(query_id, safe="")
        )

    def _raise_for_query_status(
        self, response: HttpResponse, method: HttpMethod, query_id: str
    ):
        if response.ok:
            return
        context = {
            "method": method.value,
            "query-id": query_id,
            "http-code": response.status,
            "error-message": response.error_message(),
        }
        if response.status in (404, 410):
            raise NotFoundError("Query {} not found".format(query_id), context)
        raise TransportError(
            "Request for query {} failed with status {}".format(
                query_id, response.status
            ),
            context,
        )

    def query(self, sql: str) -> Query:
        """
        Submit a statement.

        The submission response is the query's first page; session changes it
        announces are applied immediately. The returned handle has not been
        advanced yet: its first `next()` returns that page.

        Raises:
            TransportError: If the server could not be reached or rejected the request
            ProtocolError: If the response is not a result page
        """
        self._check_open()
        logger.debug("Submitting statement to %s", self.server)

        first_page = self._fetcher.fetch(
            HttpMethod.POST,
            self.server + STATEMENT_PATH,
            body=sql.encode("utf-8"),
            command_type=CommandType.SUBMIT_QUERY,
        )
        logger.debug("Submitted query %s", first_page.id)
        return Query(self._fetcher, first_page)

    def query_info(self, query_id: str) -> QueryInfo:
        """
        Fetch the server's current view of a query.

        Session state is not affected.

        Raises:
            NotFoundError: If the server does not know `query_id`
            TransportError: If the server could not be reached
            ProtocolError: If the response is not a query info document
        """
        self._check_open()
        response = self.http_client.request(
            HttpMethod.GET,
            self._query_url(query_id),
            headers=self.session.build_request_headers(),
            command_type=CommandType.QUERY_INFO,
        )
        self._raise_for_query_status(response, HttpMethod.GET, query_id)
        return QueryInfo.from_dict(response.json("query info"))

    def cancel(self, query_id: str) -> None:
        """
        Ask the server to kill a query.

        Returning means the cancellation was accepted; the query may only
        report FAILED on a following poll.

        Raises:
            NotFoundError: If the server does not know `query_id`
            TransportError: If the server could not be reached
        """
        self._check_open()
        logger.debug("Cancelling query %s", query_id)
        response = self.http_client.request(
            HttpMethod.DELETE,
            self._query_url(query_id),
            headers=self.session.build_request_headers(),
            command_type=CommandType.KILL_QUERY,
        )
        self._raise_for_query_status(response, HttpMethod.DELETE, query_id)

    def close(self) -> None:
        """Release the connection pool. Open query handles are not closed."""
        if not self.open:
            return
        self.open = False
        if self._owns_http_client:
            self.http_client.close()
