import abc
import base64
import logging
from typing import Callable, Dict, Optional

from trino_http.common.http import HttpHeader

logger = logging.getLogger(__name__)


class AuthProvider:
    """Materializes credentials into request headers. The base provider adds nothing."""

    def add_headers(self, request_headers: Dict[str, str]):
        pass

    @property
    def username(self) -> Optional[str]:
        return None


HeaderFactory = Callable[[], Dict[str, str]]


class CredentialsProvider(abc.ABC):
    """CredentialsProvider is the protocol (call-side interface)
    for plugging custom authentication into the client"""

    @abc.abstractmethod
    def auth_type(self) -> str:
        ...

    @abc.abstractmethod
    def __call__(self, *args, **kwargs) -> HeaderFactory:
        ...


class BasicAuthProvider(AuthProvider):
    """HTTP basic authentication.

    A password-less BasicAuthProvider still names the user, which is what the
    server's default insecure authenticator expects.
    """

    def __init__(self, username: str, password: Optional[str] = None):
        self._username = username
        credentials = "{}:{}".format(username, password or "")
        self.__authorization_header_value = "Basic {}".format(
            base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        )

    @property
    def username(self) -> Optional[str]:
        return self._username

    def add_headers(self, request_headers: Dict[str, str]):
        request_headers[HttpHeader.AUTHORIZATION.value] = (
            self.__authorization_header_value
        )


class AccessTokenAuthProvider(AuthProvider):
    """Bearer token (JWT) authentication."""

    def __init__(self, access_token: str):
        self.__authorization_header_value = "Bearer {}".format(access_token)

    def add_headers(self, request_headers: Dict[str, str]):
        request_headers[HttpHeader.AUTHORIZATION.value] = (
            self.__authorization_header_value
        )


class ExternalAuthProvider(AuthProvider):
    def __init__(self, credentials_provider: CredentialsProvider) -> None:
        self._header_factory = credentials_provider()

    def add_headers(self, request_headers: Dict[str, str]):
        headers = self._header_factory()
        for k, v in headers.items():
            request_headers[k] = v
