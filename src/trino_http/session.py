import logging
import threading
import urllib.parse
from typing import Dict, List, Mapping, Optional, Tuple

from trino_http.auth.authenticators import AuthProvider
from trino_http.constants import (
    DEFAULT_SOURCE,
    DEFAULT_USER,
    NO_TRANSACTION,
    RequestHeader,
    ResponseHeader,
)

logger = logging.getLogger(__name__)


def _header_values(headers, name: str) -> List[str]:
    """All raw values of a (possibly repeated) header, matched case-insensitively."""
    if hasattr(headers, "getlist"):
        return list(headers.getlist(name))
    lowered = name.lower()
    return [value for key, value in headers.items() if key.lower() == lowered]


def _list_header_values(headers, name: str) -> List[str]:
    """Values of a list-valued header; repeated headers and comma-joined values are equivalent."""
    values = []
    for raw in _header_values(headers, name):
        values.extend(item.strip() for item in raw.split(",") if item.strip())
    return values


def _single_header_value(headers, name: str) -> Optional[str]:
    values = _header_values(headers, name)
    return values[-1].strip() if values else None


def _parse_pair(value: str) -> Tuple[str, str]:
    name, _, encoded = value.partition("=")
    return urllib.parse.unquote_plus(name.strip()), urllib.parse.unquote_plus(encoded)


def _encode_pairs(pairs: Mapping[str, str], encode_name: bool = False) -> str:
    return ",".join(
        "{}={}".format(
            urllib.parse.quote_plus(name) if encode_name else name,
            urllib.parse.quote_plus(str(value)),
        )
        for name, value in pairs.items()
    )


class ClientSession:
    """
    Client-lifetime session state of the statement protocol.

    The server keeps no state between requests; everything a statement changes
    about the session (current catalog and schema, prepared statements,
    session properties, the open transaction) comes back in response headers
    and must be echoed on every later request. One ClientSession is owned by
    a client and shared by all of its queries. Reads and writes are serialized
    by an internal lock; when concurrent queries race, the last response
    merged wins.
    """

    def __init__(
        self,
        user: Optional[str] = None,
        auth_provider: Optional[AuthProvider] = None,
        source: str = DEFAULT_SOURCE,
        catalog: Optional[str] = None,
        schema: Optional[str] = None,
        path: Optional[str] = None,
        properties: Optional[Dict[str, str]] = None,
        prepared_statements: Optional[Dict[str, str]] = None,
        transaction_id: Optional[str] = None,
        roles: Optional[Dict[str, str]] = None,
        client_tags: Optional[List[str]] = None,
        timezone: Optional[str] = None,
        extra_credential: Optional[Dict[str, str]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
        transactional: bool = False,
    ):
        """
        Args:
            transactional: Advertise transaction support to the server. Without it
                the server rejects START TRANSACTION.
        """
        self.transactional = transactional
        self.auth_provider = auth_provider or AuthProvider()
        self.user = user or self.auth_provider.username or DEFAULT_USER
        self.source = source
        self.client_tags = list(client_tags or [])
        self.timezone = timezone
        self.extra_credential = dict(extra_credential or {})
        self.extra_headers = dict(extra_headers or {})

        self._lock = threading.RLock()
        self._catalog = catalog
        self._schema = schema
        self._path = path
        self._properties = dict(properties or {})
        self._prepared_statements = dict(prepared_statements or {})
        self._transaction_id = transaction_id
        self._roles = dict(roles or {})

    @property
    def catalog(self) -> Optional[str]:
        with self._lock:
            return self._catalog

    @property
    def schema(self) -> Optional[str]:
        with self._lock:
            return self._schema

    @property
    def path(self) -> Optional[str]:
        with self._lock:
            return self._path

    @property
    def transaction_id(self) -> Optional[str]:
        with self._lock:
            return self._transaction_id

    @property
    def properties(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._properties)

    @property
    def prepared_statements(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._prepared_statements)

    @property
    def roles(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._roles)

    def build_request_headers(self) -> Dict[str, str]:
        """Derive the headers every request must carry from the current state.

        Optional state is only sent when set. Has no side effects on the session.
        """
        headers: Dict[str, str] = dict(self.extra_headers)
        headers[RequestHeader.USER.value] = self.user
        if self.source:
            headers[RequestHeader.SOURCE.value] = self.source
        if self.client_tags:
            headers[RequestHeader.CLIENT_TAGS.value] = ",".join(self.client_tags)
        if self.timezone:
            headers[RequestHeader.TIME_ZONE.value] = self.timezone
        if self.extra_credential:
            headers[RequestHeader.EXTRA_CREDENTIAL.value] = _encode_pairs(
                self.extra_credential
            )

        with self._lock:
            if self._catalog:
                headers[RequestHeader.CATALOG.value] = self._catalog
            if self._schema:
                headers[RequestHeader.SCHEMA.value] = self._schema
            if self._path:
                headers[RequestHeader.PATH.value] = self._path
            if self._transaction_id:
                headers[RequestHeader.TRANSACTION_ID.value] = self._transaction_id
            elif self.transactional:
                headers[RequestHeader.TRANSACTION_ID.value] = NO_TRANSACTION
            if self._properties:
                headers[RequestHeader.SESSION.value] = _encode_pairs(self._properties)
            if self._prepared_statements:
                headers[RequestHeader.PREPARED_STATEMENT.value] = _encode_pairs(
                    self._prepared_statements, encode_name=True
                )
            if self._roles:
                headers[RequestHeader.ROLE.value] = _encode_pairs(self._roles)

        self.auth_provider.add_headers(headers)
        return headers

    def apply_response_headers(self, headers) -> None:
        """Merge the session changes announced by a response into this session.

        Accepts any mapping of header names to values; urllib3's HTTPHeaderDict is
        read with repeated headers preserved. Unrecognized headers are ignored and
        applying the same headers twice leaves the same state as applying them once.
        """
        if not headers:
            return

        set_catalog = _single_header_value(headers, ResponseHeader.SET_CATALOG.value)
        set_schema = _single_header_value(headers, ResponseHeader.SET_SCHEMA.value)
        set_path = _single_header_value(headers, ResponseHeader.SET_PATH.value)
        started_transaction = _single_header_value(
            headers, ResponseHeader.STARTED_TRANSACTION_ID.value
        )
        clear_transaction = _header_values(
            headers, ResponseHeader.CLEAR_TRANSACTION_ID.value
        )
        set_session = _list_header_values(headers, ResponseHeader.SET_SESSION.value)
        clear_session = _list_header_values(
            headers, ResponseHeader.CLEAR_SESSION.value
        )
        added_prepare = _list_header_values(
            headers, ResponseHeader.ADDED_PREPARE.value
        )
        deallocated_prepare = _list_header_values(
            headers, ResponseHeader.DEALLOCATED_PREPARE.value
        )
        set_role = _list_header_values(headers, ResponseHeader.SET_ROLE.value)

        with self._lock:
            if set_catalog is not None:
                logger.debug("Session catalog set to %s", set_catalog)
                self._catalog = set_catalog
            if set_schema is not None:
                logger.debug("Session schema set to %s", set_schema)
                self._schema = set_schema
            if set_path is not None:
                self._path = set_path

            for value in set_session:
                name, property_value = _parse_pair(value)
                self._properties[name] = property_value
            for value in clear_session:
                self._properties.pop(urllib.parse.unquote_plus(value), None)

            for value in added_prepare:
                name, statement = _parse_pair(value)
                logger.debug("Registered prepared statement %s", name)
                self._prepared_statements[name] = statement
            for value in deallocated_prepare:
                name = urllib.parse.unquote_plus(value)
                logger.debug("Deallocated prepared statement %s", name)
                self._prepared_statements.pop(name, None)

            for value in set_role:
                catalog, role = _parse_pair(value)
                self._roles[catalog] = role

            if started_transaction:
                logger.debug("Started transaction %s", started_transaction)
                self._transaction_id = started_transaction
            if clear_transaction:
                logger.debug("Cleared transaction %s", self._transaction_id)
                self._transaction_id = None

    def __repr__(self) -> str:
        return "ClientSession(user={!r}, catalog={!r}, schema={!r}, transaction_id={!r})".format(
            self.user, self.catalog, self.schema, self.transaction_id
        )
