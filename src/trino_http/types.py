from enum import Enum
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class QueryState(Enum):
    """
    Enum representing the execution state of a query as reported by the server.

    Attributes:
        QUEUED: Query has been accepted and is waiting to be dispatched
        WAITING_FOR_RESOURCES: Query is waiting for cluster resources
        DISPATCHING: Query is being handed to a coordinator
        PLANNING: Query is being analyzed and planned
        STARTING: Query stages are being scheduled
        RUNNING: Query is executing
        FINISHING: Query has produced all output and is committing
        FINISHED: Query completed successfully
        FAILED: Query failed, was cancelled or was abandoned by the client
    """

    QUEUED = "QUEUED"
    WAITING_FOR_RESOURCES = "WAITING_FOR_RESOURCES"
    DISPATCHING = "DISPATCHING"
    PLANNING = "PLANNING"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    FINISHING = "FINISHING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"

    @classmethod
    def from_str(cls, state: Optional[str]) -> Optional["QueryState"]:
        """
        Map a server state string to a QueryState.

        Args:
            state: state string as found in a page's stats or a query info document
        Returns:
            QueryState: The corresponding enum value, or None if the string is unknown
        """

        if not state:
            return None
        try:
            return cls(state.upper())
        except ValueError:
            return None

    def is_done(self) -> bool:
        return self in (QueryState.FINISHED, QueryState.FAILED)


class SSLOptions:
    tls_verify: bool
    tls_verify_hostname: bool
    tls_trusted_ca_file: Optional[str]
    tls_client_cert_file: Optional[str]
    tls_client_cert_key_file: Optional[str]
    tls_client_cert_key_password: Optional[str]

    def __init__(
        self,
        tls_verify: bool = True,
        tls_verify_hostname: bool = True,
        tls_trusted_ca_file: Optional[str] = None,
        tls_client_cert_file: Optional[str] = None,
        tls_client_cert_key_file: Optional[str] = None,
        tls_client_cert_key_password: Optional[str] = None,
    ):
        self.tls_verify = tls_verify
        self.tls_verify_hostname = tls_verify_hostname
        self.tls_trusted_ca_file = tls_trusted_ca_file
        self.tls_client_cert_file = tls_client_cert_file
        self.tls_client_cert_key_file = tls_client_cert_key_file
        self.tls_client_cert_key_password = tls_client_cert_key_password
