from enum import Enum

DEFAULT_SERVER = "http://localhost:8080"
DEFAULT_USER = "trino"
DEFAULT_SOURCE = "trino-http-client"

# Sent as the transaction id by a client that can take part in transactions
NO_TRANSACTION = "NONE"

STATEMENT_PATH = "/v1/statement"
QUERY_PATH = "/v1/query"
QUERY_PATH_WITH_ID = QUERY_PATH + "/{}"

# Page fetch loop
DEFAULT_POLL_DELAY_MIN = 0.05
DEFAULT_POLL_DELAY_MAX = 1.0
DEFAULT_POLL_TIMEOUT = 300.0


class RequestHeader(str, Enum):
    """Headers the client sends to carry session state."""

    USER = "X-Trino-User"
    SOURCE = "X-Trino-Source"
    CATALOG = "X-Trino-Catalog"
    SCHEMA = "X-Trino-Schema"
    PATH = "X-Trino-Path"
    ROLE = "X-Trino-Role"
    SESSION = "X-Trino-Session"
    PREPARED_STATEMENT = "X-Trino-Prepared-Statement"
    TRANSACTION_ID = "X-Trino-Transaction-Id"
    CLIENT_TAGS = "X-Trino-Client-Tags"
    TIME_ZONE = "X-Trino-Time-Zone"
    EXTRA_CREDENTIAL = "X-Trino-Extra-Credential"


class ResponseHeader(str, Enum):
    """Headers the server sends to mutate the client's session state."""

    SET_CATALOG = "X-Trino-Set-Catalog"
    SET_SCHEMA = "X-Trino-Set-Schema"
    SET_PATH = "X-Trino-Set-Path"
    SET_ROLE = "X-Trino-Set-Role"
    SET_SESSION = "X-Trino-Set-Session"
    CLEAR_SESSION = "X-Trino-Clear-Session"
    ADDED_PREPARE = "X-Trino-Added-Prepare"
    DEALLOCATED_PREPARE = "X-Trino-Deallocated-Prepare"
    STARTED_TRANSACTION_ID = "X-Trino-Started-Transaction-Id"
    CLEAR_TRANSACTION_ID = "X-Trino-Clear-Transaction-Id"
