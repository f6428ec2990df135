import time
from unittest.mock import patch

import pytest
from urllib3 import HTTPResponse
from urllib3.exceptions import MaxRetryError

from trino_http.auth.retry import CommandType, RequestHistory, TrinoRetryPolicy
from trino_http.exc import (
    MaxRetryDurationError,
    NonRecoverableNetworkError,
    UnsafeToRetryError,
)


class TestRetry:
    @pytest.fixture()
    def retry_policy(self) -> TrinoRetryPolicy:
        return TrinoRetryPolicy(
            delay_min=1,
            delay_max=30,
            stop_after_attempts_count=3,
            stop_after_attempts_duration=900,
            force_dangerous_codes=[],
        )

    @pytest.fixture()
    def error_history(self) -> RequestHistory:
        return RequestHistory(
            method="GET", url=None, error=None, status=503, redirect_location=None
        )

    @patch("time.sleep")
    def test_sleep__no_retry_after(self, t_mock, retry_policy, error_history):
        retry_policy.start_retry_timer()
        retry_policy.history = (error_history, error_history)

        retry_policy.sleep(HTTPResponse(status=503))

        t_mock.assert_called_with(2)

    @patch("time.sleep")
    def test_sleep__backoff_is_capped_by_delay_max(
        self, t_mock, retry_policy, error_history
    ):
        retry_policy.start_retry_timer()
        retry_policy.history = (error_history,) * 8

        retry_policy.sleep(HTTPResponse(status=503))

        t_mock.assert_called_with(retry_policy.delay_max)

    @patch("time.sleep")
    def test_sleep__retry_after_header(self, t_mock, retry_policy):
        retry_policy.start_retry_timer()

        retry_policy.sleep(HTTPResponse(status=503, headers={"Retry-After": "3"}))

        t_mock.assert_called_with(3)

    @patch("time.sleep")
    def test_sleep__retry_after_exceeding_duration(self, t_mock):
        retry_policy = TrinoRetryPolicy(
            delay_min=1,
            delay_max=30,
            stop_after_attempts_count=3,
            stop_after_attempts_duration=2,
            force_dangerous_codes=[],
        )
        retry_policy.start_retry_timer()

        with pytest.raises(MaxRetryDurationError):
            retry_policy.sleep(HTTPResponse(status=503, headers={"Retry-After": "5"}))
        t_mock.assert_not_called()

    def test_backoff_exceeding_duration(self, error_history):
        retry_policy = TrinoRetryPolicy(
            delay_min=1,
            delay_max=30,
            stop_after_attempts_count=3,
            stop_after_attempts_duration=1,
            force_dangerous_codes=[],
        )
        retry_policy.start_retry_timer()
        retry_policy.history = (error_history, error_history)

        with pytest.raises(MaxRetryDurationError):
            retry_policy.get_backoff_time()

    def test_excessive_retry_attempts_error(self, retry_policy):
        retry_policy.start_retry_timer()
        retry_policy.command_type = CommandType.FETCH_PAGE

        with pytest.raises(MaxRetryError):
            for _ in range(retry_policy.stop_after_attempts_count + 1):
                retry_policy = retry_policy.increment(
                    method="GET", response=HTTPResponse(status=503)
                )

    def test_new_carries_policy_state(self, retry_policy):
        retry_policy.command_type = CommandType.QUERY_INFO
        retry_policy.start_retry_timer()
        started = retry_policy._retry_start_time

        copy = retry_policy.new()

        assert isinstance(copy, TrinoRetryPolicy)
        assert copy.command_type == CommandType.QUERY_INFO
        assert copy._retry_start_time == started
        assert copy.total == retry_policy.stop_after_attempts_count
        assert copy.delay_max == retry_policy.delay_max

    @pytest.mark.parametrize("status", [200, 204])
    def test_success_is_not_retried(self, retry_policy, status):
        assert not retry_policy.is_retry("GET", status)

    def test_not_implemented_is_not_recoverable(self, retry_policy):
        with pytest.raises(NonRecoverableNetworkError):
            retry_policy.is_retry("GET", 501)

    @pytest.mark.parametrize(
        "command_type",
        [
            CommandType.FETCH_PAGE,
            CommandType.ABANDON_QUERY,
            CommandType.QUERY_INFO,
            CommandType.KILL_QUERY,
        ],
    )
    @pytest.mark.parametrize("status", [429, 502, 503, 504])
    def test_transient_codes_are_retried(self, retry_policy, command_type, status):
        retry_policy.command_type = command_type
        assert retry_policy.is_retry("GET", status)

    @pytest.mark.parametrize("status", [400, 401, 404, 410, 500])
    def test_client_errors_are_not_retried(self, retry_policy, status):
        retry_policy.command_type = CommandType.FETCH_PAGE
        assert not retry_policy.is_retry("GET", status)

    @pytest.mark.parametrize("status", [429, 503])
    def test_submission_retried_when_rejected_before_execution(
        self, retry_policy, status
    ):
        retry_policy.command_type = CommandType.SUBMIT_QUERY
        assert retry_policy.is_retry("POST", status)

    @pytest.mark.parametrize("status", [502, 504])
    def test_submission_is_unsafe_to_retry(self, retry_policy, status):
        retry_policy.command_type = CommandType.SUBMIT_QUERY
        with pytest.raises(UnsafeToRetryError):
            retry_policy.is_retry("POST", status)

    def test_submission_not_retried_for_server_error(self, retry_policy):
        retry_policy.command_type = CommandType.SUBMIT_QUERY
        assert not retry_policy.is_retry("POST", 500)

    def test_submission_retried_for_dangerous_codes(self):
        retry_policy = TrinoRetryPolicy(
            delay_min=1,
            delay_max=30,
            stop_after_attempts_count=3,
            stop_after_attempts_duration=900,
            force_dangerous_codes=[502, 500],
        )
        retry_policy.command_type = CommandType.SUBMIT_QUERY

        assert retry_policy.is_retry("POST", 502)
        assert retry_policy.is_retry("POST", 500)

    def test_check_timer_duration(self, retry_policy):
        retry_policy.start_retry_timer()
        assert 0 <= retry_policy.check_timer_duration() < time.time()
