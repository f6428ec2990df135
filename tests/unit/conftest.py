import json
from unittest.mock import Mock

import pytest
from urllib3 import HTTPHeaderDict

from trino_http.common.http import HttpResponse
from trino_http.common.http_client import TrinoHttpClient

SERVER = "http://coordinator:8080"


def _make_response(body=None, status=200, headers=None):
    """Build an HttpResponse; `headers` may be a dict or a list of pairs for repeated headers."""
    header_dict = HTTPHeaderDict()
    items = headers.items() if isinstance(headers, dict) else (headers or [])
    for name, value in items:
        header_dict.add(name, value)
    if body is None:
        data = b""
    elif isinstance(body, bytes):
        data = body
    else:
        data = json.dumps(body).encode("utf-8")
    return HttpResponse(status=status, headers=header_dict, data=data)


def _page_body(
    query_id="20240101_000000_00001_abcde",
    token=None,
    data=None,
    columns=None,
    error=None,
    state="RUNNING",
    final=False,
):
    body = {
        "id": query_id,
        "infoUri": f"{SERVER}/ui/query.html?{query_id}",
        "stats": {"state": state, "queued": state == "QUEUED"},
    }
    if not final and error is None:
        body["nextUri"] = f"{SERVER}/v1/statement/executing/{query_id}/y/{token or 1}"
    if columns is not None:
        body["columns"] = columns
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    return body


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def page_body():
    return _page_body


@pytest.fixture
def server_url():
    return SERVER


@pytest.fixture
def mock_http_client():
    return Mock(spec=TrinoHttpClient)
