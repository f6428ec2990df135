from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import json
import logging

from urllib3 import HTTPHeaderDict

from trino_http.exc import ProtocolError

logger = logging.getLogger(__name__)


# Enums for HTTP Methods
class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"


# HTTP request headers
class HttpHeader(str, Enum):
    CONTENT_TYPE = "Content-Type"
    AUTHORIZATION = "Authorization"
    USER_AGENT = "User-Agent"


@dataclass
class HttpResponse:
    """Status, headers and raw body of one completed HTTP exchange."""

    status: int
    headers: HTTPHeaderDict = field(default_factory=HTTPHeaderDict)
    data: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self, what: str = "response"):
        """Decode the body as JSON, raising ProtocolError if it is not."""
        try:
            return json.loads(self.data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise ProtocolError(
                f"Could not decode {what} body as JSON",
                {"http-code": self.status, "original-exception": e},
            ) from e

    def error_message(self) -> Optional[str]:
        """Best-effort extraction of a human readable message from an error body."""
        if not self.data:
            return None
        text = self.data.decode("utf-8", errors="replace").strip()
        try:
            body = json.loads(text)
        except ValueError:
            return text or None
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or text
        return text
