import json
import logging

logger = logging.getLogger(__name__)


class Error(Exception):
    """Base class for all exceptions raised by the client.
    `message`: An optional user-friendly error message. It should be short, actionable and stable
    `context`: Optional extra context about the error. MUST be JSON serializable
    """

    def __init__(self, message=None, context=None, *args, **kwargs):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.context = context or {}

    def __str__(self):
        return self.message

    def message_with_context(self):
        return self.message + ": " + json.dumps(self.context, default=str)


class InterfaceError(Error):
    pass


class IllegalStateError(InterfaceError):
    """Thrown when an operation is invoked on a query handle that is already closed
    or has already reached a terminal state. This is a programming error."""

    pass


class DatabaseError(Error):
    pass


class OperationalError(DatabaseError):
    pass


class NotFoundError(DatabaseError):
    """Thrown if the server does not know the query id passed to an info or cancel call.
    Its context will have the following keys:
    "query-id": The query id that was looked up
    "http-code": HTTP response code (404 or 410)
    """

    pass


class ServerOperationError(DatabaseError):
    """Thrown by the strict result accessors when the query moved to a failed state,
    for example because of a syntax error. The failure itself is always available
    as data on the terminal page; this exception is only raised on request.
    Its context will have the following keys:
    "query-id": The id of the failed query
    "error-code": The numeric error code reported by the server
    "error-name": The symbolic error name reported by the server
    """

    pass


### Client-side failures ###
class TransportError(OperationalError):
    """Thrown if there was an error during a request to the server.
    Its context will have the following keys:
    "method": The HTTP method of the failed request
    "url": The URL of the failed request
    "http-code": HTTP response code (if available)
    "error-message": Error message sent by the server (if available)
    "original-exception": The Python level original exception (if available)
    """

    pass


class MaxRetryDurationError(TransportError):
    """Thrown if the next HTTP request retry would exceed the configured
    stop_after_attempts_duration
    """


class NonRecoverableNetworkError(TransportError):
    """Thrown if an HTTP code 501 is received"""


class UnsafeToRetryError(TransportError):
    """Thrown if a statement submission receives a code other than 200, 429, or 503"""


class ProtocolError(OperationalError):
    """Thrown if a response body cannot be decoded into the expected document shape"""

    pass


class QueryTimeoutError(OperationalError):
    """Thrown if polling for the next page exceeded the configured ceiling.
    This is distinct from a query that the server reports as failed. The query
    handle is left untouched and the call may be retried.
    Its context will have the following keys:
    "query-id": The id of the query being polled
    "next-uri": The continuation URI polling would resume from
    "elapsed-seconds": Time spent polling before giving up
    """

    pass
