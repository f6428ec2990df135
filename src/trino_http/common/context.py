import logging
from typing import Optional, List

from trino_http.constants import (
    DEFAULT_POLL_DELAY_MAX,
    DEFAULT_POLL_DELAY_MIN,
    DEFAULT_POLL_TIMEOUT,
)

logger = logging.getLogger(__name__)


class ClientContext:
    def __init__(
        self,
        server: str,
        # HTTP client configuration parameters
        ssl_options=None,  # SSLOptions type
        socket_timeout: Optional[float] = None,
        retry_stop_after_attempts_count: Optional[int] = None,
        retry_delay_min: Optional[float] = None,
        retry_delay_max: Optional[float] = None,
        retry_stop_after_attempts_duration: Optional[float] = None,
        retry_dangerous_codes: Optional[List[int]] = None,
        pool_connections: Optional[int] = None,
        pool_maxsize: Optional[int] = None,
        user_agent: Optional[str] = None,
        # Page fetch loop
        poll_delay_min: Optional[float] = None,
        poll_delay_max: Optional[float] = None,
        poll_timeout: Optional[float] = None,
    ):
        self.server = server

        # HTTP client configuration
        self.ssl_options = ssl_options
        self.socket_timeout = socket_timeout
        # Zero is a valid setting for these, e.g. to disable retries
        self.retry_stop_after_attempts_count = (
            retry_stop_after_attempts_count
            if retry_stop_after_attempts_count is not None
            else 5
        )
        self.retry_delay_min = retry_delay_min if retry_delay_min is not None else 1.0
        self.retry_delay_max = retry_delay_max if retry_delay_max is not None else 10.0
        self.retry_stop_after_attempts_duration = (
            retry_stop_after_attempts_duration
            if retry_stop_after_attempts_duration is not None
            else 300.0
        )
        self.retry_dangerous_codes = retry_dangerous_codes or []
        self.pool_connections = pool_connections or 10
        self.pool_maxsize = pool_maxsize or 20
        self.user_agent = user_agent

        self.poll_delay_min = (
            poll_delay_min if poll_delay_min is not None else DEFAULT_POLL_DELAY_MIN
        )
        self.poll_delay_max = (
            poll_delay_max if poll_delay_max is not None else DEFAULT_POLL_DELAY_MAX
        )
        self.poll_timeout = (
            poll_timeout if poll_timeout is not None else DEFAULT_POLL_TIMEOUT
        )

        if self.poll_delay_min > self.poll_delay_max:
            logger.warning(
                "_poll_delay_min (%s) > _poll_delay_max (%s); using _poll_delay_max for both",
                self.poll_delay_min,
                self.poll_delay_max,
            )
            self.poll_delay_min = self.poll_delay_max


def build_client_context(server: str, **kwargs) -> ClientContext:
    """Build a ClientContext from the keyword arguments accepted by connect()."""
    from trino_http import USER_AGENT_NAME, __version__

    user_agent = USER_AGENT_NAME + "/" + __version__
    if kwargs.get("user_agent_entry"):
        user_agent = "{} ({})".format(user_agent, kwargs["user_agent_entry"])

    return ClientContext(
        server=server,
        ssl_options=kwargs.get("ssl_options"),
        socket_timeout=kwargs.get("socket_timeout"),
        retry_stop_after_attempts_count=kwargs.get("_retry_stop_after_attempts_count"),
        retry_delay_min=kwargs.get("_retry_delay_min"),
        retry_delay_max=kwargs.get("_retry_delay_max"),
        retry_stop_after_attempts_duration=kwargs.get(
            "_retry_stop_after_attempts_duration"
        ),
        retry_dangerous_codes=kwargs.get("_retry_dangerous_codes"),
        pool_connections=kwargs.get("_pool_connections"),
        pool_maxsize=kwargs.get("_pool_maxsize"),
        user_agent=user_agent,
        poll_delay_min=kwargs.get("_poll_delay_min"),
        poll_delay_max=kwargs.get("_poll_delay_max"),
        poll_timeout=kwargs.get("_poll_timeout"),
    )
