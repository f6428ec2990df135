__version__ = "0.3.0"
USER_AGENT_NAME = "TrinoHttpClient"

from trino_http.auth.authenticators import (
    AccessTokenAuthProvider,
    AuthProvider,
    BasicAuthProvider,
    CredentialsProvider,
)
from trino_http.client import Trino
from trino_http.constants import DEFAULT_SERVER
from trino_http.exc import *
from trino_http.models import ErrorInfo, Page, QueryInfo
from trino_http.query import Query, QueryHandleState
from trino_http.session import ClientSession
from trino_http.types import QueryState, SSLOptions


def connect(server: str = DEFAULT_SERVER, **kwargs) -> Trino:
    """Create a client. See `trino_http.client.Trino` for the accepted arguments."""
    return Trino(server, **kwargs)
