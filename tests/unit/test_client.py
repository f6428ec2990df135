from unittest.mock import patch

import pytest

import trino_http
from trino_http import Trino, connect
from trino_http.auth.authenticators import BasicAuthProvider
from trino_http.auth.retry import CommandType
from trino_http.client import normalize_server
from trino_http.common.http import HttpMethod
from trino_http.common.http_client import TrinoHttpClient
from trino_http.exc import InterfaceError, NotFoundError, TransportError
from trino_http.models import QueryInfo
from trino_http.query import QueryHandleState

TABLE_NOT_FOUND = {
    "message": "line 1:15: Table 'tpcds.sf100000.foobar' does not exist",
    "errorCode": 46,
    "errorName": "TABLE_NOT_FOUND",
}


class TestTrinoClient:
    @pytest.fixture
    def client(self, mock_http_client, server_url):
        return Trino(
            server_url,
            catalog="tpcds",
            schema="sf100000",
            auth=BasicAuthProvider("test"),
            http_client=mock_http_client,
        )

    @pytest.mark.parametrize(
        "server, expected",
        [
            ("coordinator:8080", "http://coordinator:8080"),
            ("http://coordinator:8080/", "http://coordinator:8080"),
            ("https://trino.example.com", "https://trino.example.com"),
        ],
    )
    def test_normalize_server(self, server, expected):
        assert normalize_server(server) == expected

    def test_user_defaults_to_auth_username(self, client):
        assert client.session.user == "test"

    def test_query_posts_statement(
        self, client, mock_http_client, make_response, page_body, server_url
    ):
        mock_http_client.request.return_value = make_response(
            page_body(state="QUEUED")
        )

        query = client.query("select * from customer limit 1")

        method, url = mock_http_client.request.call_args[0]
        kwargs = mock_http_client.request.call_args[1]
        assert method == HttpMethod.POST
        assert url == server_url + "/v1/statement"
        assert kwargs["body"] == b"select * from customer limit 1"
        assert kwargs["command_type"] == CommandType.SUBMIT_QUERY
        assert kwargs["headers"]["X-Trino-User"] == "test"
        assert kwargs["headers"]["X-Trino-Catalog"] == "tpcds"
        assert kwargs["headers"]["X-Trino-Schema"] == "sf100000"
        assert kwargs["headers"]["Authorization"].startswith("Basic ")

        assert query.state == QueryHandleState.FRESH
        assert query.query_id == page_body()["id"]

    def test_rejected_submission_raises(self, client, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(
            body=b"Unauthorized", status=401
        )

        with pytest.raises(TransportError) as excinfo:
            client.query("select 1")
        assert excinfo.value.context["http-code"] == 401

    def test_exhaust_query_results(
        self, client, mock_http_client, make_response, page_body
    ):
        mock_http_client.request.side_effect = [
            make_response(page_body(state="QUEUED", token=0)),
            make_response(
                page_body(
                    columns=[{"name": "c_customer_sk", "type": "bigint"}],
                    data=[[1]],
                    token=2,
                )
            ),
            make_response(page_body(state="FINISHED", final=True)),
        ]

        query = client.query("select * from customer limit 1")
        rows = query.fold([], lambda page, acc: acc + (page.data or []))

        assert len(rows) == 1
        assert query.state == QueryHandleState.DONE

    def test_session_changes_carry_over_to_next_query(
        self, client, mock_http_client, make_response, page_body
    ):
        mock_http_client.request.side_effect = [
            make_response(
                page_body(state="FINISHED", final=True),
                headers={"X-Trino-Set-Catalog": "tpch", "X-Trino-Set-Schema": "sf1"},
            ),
            make_response(page_body(state="QUEUED")),
        ]

        client.query("use tpch.sf1").fold(None, lambda page, acc: acc)
        client.query("select 1")

        headers = mock_http_client.request.call_args[1]["headers"]
        assert headers["X-Trino-Catalog"] == "tpch"
        assert headers["X-Trino-Schema"] == "sf1"

    def test_prepared_statements_are_sent_with_later_queries(
        self, client, mock_http_client, make_response, page_body
    ):
        mock_http_client.request.side_effect = [
            make_response(
                page_body(state="FINISHED", final=True),
                headers={
                    "X-Trino-Added-Prepare": "list_customers=select+*+from+customer+limit+%3F"
                },
            ),
            make_response(page_body(data=[[1]], state="FINISHED", final=True)),
        ]

        client.query("prepare list_customers from select * from customer limit ?")
        client.query("execute list_customers using 1")

        headers = mock_http_client.request.call_args[1]["headers"]
        assert (
            headers["X-Trino-Prepared-Statement"]
            == "list_customers=select+*+from+customer+limit+%3F"
        )

    def test_headers_from_continuation_pages_reach_the_session(
        self, client, mock_http_client, make_response, page_body
    ):
        mock_http_client.request.side_effect = [
            make_response(page_body(state="QUEUED")),
            make_response(
                page_body(state="FINISHED", final=True),
                headers={"X-Trino-Started-Transaction-Id": "tx-42"},
            ),
        ]

        query = client.query("start transaction")
        query.fold(None, lambda page, acc: acc)

        assert client.session.transaction_id == "tx-42"

    def test_transactional_client_advertises_transactions(
        self, mock_http_client, make_response, page_body, server_url
    ):
        client = Trino(server_url, transactional=True, http_client=mock_http_client)
        mock_http_client.request.side_effect = [
            make_response(
                page_body(state="FINISHED", final=True),
                headers={"X-Trino-Started-Transaction-Id": "tx-7"},
            ),
            make_response(page_body(state="QUEUED")),
        ]

        client.query("start transaction")
        first_headers = mock_http_client.request.call_args_list[0][1]["headers"]
        client.query("insert into orders values (1, 9.99)")
        second_headers = mock_http_client.request.call_args_list[1][1]["headers"]

        assert first_headers["X-Trino-Transaction-Id"] == "NONE"
        assert second_headers["X-Trino-Transaction-Id"] == "tx-7"

    def test_query_info(
        self, client, mock_http_client, make_response, server_url
    ):
        mock_http_client.request.return_value = make_response(
            {
                "queryId": "q1",
                "state": "RUNNING",
                "query": "select * from customer limit 1",
            },
            headers={"X-Trino-Set-Catalog": "ignored"},
        )

        info = client.query_info("q1")

        assert isinstance(info, QueryInfo)
        assert info.query == "select * from customer limit 1"
        method, url = mock_http_client.request.call_args[0]
        assert method == HttpMethod.GET
        assert url == server_url + "/v1/query/q1"
        assert (
            mock_http_client.request.call_args[1]["command_type"]
            == CommandType.QUERY_INFO
        )
        assert client.session.catalog == "tpcds"

    def test_query_info_for_unknown_query(
        self, client, mock_http_client, make_response
    ):
        mock_http_client.request.return_value = make_response(
            body=b"Query not found", status=404
        )

        with pytest.raises(NotFoundError) as excinfo:
            client.query_info("missing")
        assert excinfo.value.context["query-id"] == "missing"

    def test_query_info_server_failure(self, client, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(status=500)

        with pytest.raises(TransportError):
            client.query_info("q1")

    def test_cancel_kills_query(
        self, client, mock_http_client, make_response, server_url
    ):
        mock_http_client.request.return_value = make_response(status=204)

        client.cancel("q1")

        method, url = mock_http_client.request.call_args[0]
        assert method == HttpMethod.DELETE
        assert url == server_url + "/v1/query/q1"
        assert (
            mock_http_client.request.call_args[1]["command_type"]
            == CommandType.KILL_QUERY
        )

    def test_cancel_then_poll_reports_failure(
        self, client, mock_http_client, make_response, page_body
    ):
        mock_http_client.request.side_effect = [
            make_response(page_body(state="QUEUED")),
            make_response(status=204),
            make_response(
                page_body(
                    state="FAILED",
                    error={
                        "message": "Query was canceled",
                        "errorName": "USER_CANCELED",
                    },
                )
            ),
        ]

        query = client.query("select * from customer")
        query.next()
        client.cancel(query.query_id)
        page = query.next()

        assert page.error.error_name == "USER_CANCELED"
        assert query.state == QueryHandleState.FAILED

    def test_cancel_unknown_query(self, client, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(status=410)

        with pytest.raises(NotFoundError):
            client.cancel("gone")

    def test_closed_client_rejects_calls(self, client, mock_http_client):
        client.close()

        with pytest.raises(InterfaceError):
            client.query("select 1")
        with pytest.raises(InterfaceError):
            client.query_info("q1")
        with pytest.raises(InterfaceError):
            client.cancel("q1")
        mock_http_client.close.assert_not_called()

    @patch("trino_http.client.TrinoHttpClient")
    def test_owned_http_client_is_closed(self, mock_http_client_class):
        with Trino("coordinator:8080") as client:
            assert client.http_client is mock_http_client_class.return_value

        mock_http_client_class.return_value.close.assert_called_once()

    @patch("trino_http.client.TrinoHttpClient")
    def test_client_context_from_kwargs(self, mock_http_client_class):
        client = Trino(
            "coordinator:8080",
            _retry_stop_after_attempts_count=2,
            _poll_timeout=5,
            user_agent_entry="tests",
        )

        context = mock_http_client_class.call_args[0][0]
        assert context.retry_stop_after_attempts_count == 2
        assert context.poll_timeout == 5
        assert context.user_agent.endswith("(tests)")
        assert client._fetcher.poll_timeout == 5

    def test_connect(self, mock_http_client):
        client = connect("coordinator:8080", user="alice", http_client=mock_http_client)

        assert isinstance(client, trino_http.Trino)
        assert client.server == "http://coordinator:8080"
        assert client.session.user == "alice"

    def test_default_http_client_type(self):
        client = Trino()
        try:
            assert isinstance(client.http_client, TrinoHttpClient)
            assert client.server == trino_http.DEFAULT_SERVER
        finally:
            client.close()
