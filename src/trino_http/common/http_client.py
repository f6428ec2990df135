import logging
import ssl
import urllib.parse
from contextlib import contextmanager
from typing import Dict, Optional, Generator

import urllib3
from urllib3 import BaseHTTPResponse, PoolManager
from urllib3.exceptions import MaxRetryError

from trino_http.auth.retry import TrinoRetryPolicy, CommandType
from trino_http.exc import Error, TransportError
from trino_http.common.context import ClientContext
from trino_http.common.http import HttpHeader, HttpMethod, HttpResponse

logger = logging.getLogger(__name__)


class TrinoHttpClient:
    """
    HTTP transport for every request the client issues.

    This client uses urllib3 for robust HTTP communication with retry policies,
    connection pooling and SSL support. It issues exactly one logical call per
    `request()`, returning status, headers and body, and reports connectivity
    failures as TransportError. It never inspects the protocol payload.
    """

    def __init__(self, client_context: ClientContext):
        """
        Initialize the HTTP client.

        Args:
            client_context: ClientContext instance containing HTTP configuration
        """
        self.config = client_context
        self._pool_manager: Optional[PoolManager] = None
        self._retry_policy: Optional[TrinoRetryPolicy] = None
        self._setup_pool_manager()

    def _setup_pool_manager(self):
        """Set up the pool manager shared by all requests of this client."""

        # SSL context setup
        ssl_context = None
        if self.config.ssl_options:
            ssl_context = ssl.create_default_context()

            # Configure SSL verification
            if not self.config.ssl_options.tls_verify:
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE
            elif not self.config.ssl_options.tls_verify_hostname:
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_REQUIRED

            # Load custom CA file if specified
            if self.config.ssl_options.tls_trusted_ca_file:
                ssl_context.load_verify_locations(
                    self.config.ssl_options.tls_trusted_ca_file
                )

            # Load client certificate if specified
            if (
                self.config.ssl_options.tls_client_cert_file
                and self.config.ssl_options.tls_client_cert_key_file
            ):
                ssl_context.load_cert_chain(
                    self.config.ssl_options.tls_client_cert_file,
                    self.config.ssl_options.tls_client_cert_key_file,
                    self.config.ssl_options.tls_client_cert_key_password,
                )

        # Create retry policy
        self._retry_policy = TrinoRetryPolicy(
            delay_min=self.config.retry_delay_min,
            delay_max=self.config.retry_delay_max,
            stop_after_attempts_count=self.config.retry_stop_after_attempts_count,
            stop_after_attempts_duration=self.config.retry_stop_after_attempts_duration,
            force_dangerous_codes=self.config.retry_dangerous_codes,
        )

        self._pool_manager = PoolManager(
            num_pools=self.config.pool_connections,
            maxsize=self.config.pool_maxsize,
            retries=self._retry_policy,
            timeout=urllib3.Timeout(
                connect=self.config.socket_timeout, read=self.config.socket_timeout
            )
            if self.config.socket_timeout
            else None,
            ssl_context=ssl_context,
        )

    def _prepare_headers(
        self, headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, str]:
        """Prepare headers for the request, including User-Agent."""
        request_headers = {}

        if self.config.user_agent:
            request_headers[HttpHeader.USER_AGENT.value] = self.config.user_agent

        if headers:
            request_headers.update(headers)

        return request_headers

    def _prepare_retry_policy(self, command_type: CommandType) -> TrinoRetryPolicy:
        """Set up a fresh retry policy for the current request."""
        # Retry objects are copied per request so concurrent queries never share counters
        retry_policy = self._retry_policy.new()
        retry_policy.command_type = command_type
        retry_policy.start_retry_timer()
        return retry_policy

    @contextmanager
    def request_context(
        self,
        method: HttpMethod,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        command_type: CommandType = CommandType.OTHER,
    ) -> Generator[BaseHTTPResponse, None, None]:
        """
        Context manager for making HTTP requests with proper resource cleanup.

        Args:
            method: HTTP method (HttpMethod.GET, HttpMethod.POST, HttpMethod.DELETE)
            url: Absolute URL to request
            headers: Optional headers dict
            body: Optional request body
            command_type: Protocol operation, used by the retry policy

        Yields:
            BaseHTTPResponse: The HTTP response object
        """
        if self._pool_manager is None:
            raise TransportError(
                "HTTP client has been closed", {"method": method.value, "url": url}
            )

        logger.debug(
            "Making %s request to %s", method.value, urllib.parse.urlparse(url).netloc
        )

        request_headers = self._prepare_headers(headers)
        retry_policy = self._prepare_retry_policy(command_type)

        response = None

        try:
            response = self._pool_manager.request(
                method=method.value,
                url=url,
                headers=request_headers,
                body=body,
                retries=retry_policy,
            )
            yield response
        except Error:
            # raised by the retry policy, already carries the right type
            raise
        except MaxRetryError as e:
            logger.debug("HTTP request failed after retries: %s", e)
            raise TransportError(
                f"HTTP request failed: {e}",
                {"method": method.value, "url": url, "original-exception": e},
            ) from e
        except Exception as e:
            logger.debug("HTTP request error: %s", e)
            raise TransportError(
                f"HTTP request error: {e}",
                {"method": method.value, "url": url, "original-exception": e},
            ) from e
        finally:
            if response:
                response.close()

    def request(
        self,
        method: HttpMethod,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        command_type: CommandType = CommandType.OTHER,
    ) -> HttpResponse:
        """
        Make an HTTP request.

        Returns:
            HttpResponse: status, headers and the fully read body
        """
        with self.request_context(
            method, url, headers=headers, body=body, command_type=command_type
        ) as response:
            return HttpResponse(
                status=response.status,
                headers=response.headers,
                data=response.data or b"",
            )

    def close(self):
        """Close the underlying connection pools."""
        if self._pool_manager:
            self._pool_manager.clear()
            self._pool_manager = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
