from trino_http.common.context import ClientContext, build_client_context


class TestClientContext:
    def test_defaults(self):
        context = ClientContext("http://coordinator:8080")

        assert context.retry_stop_after_attempts_count == 5
        assert context.poll_delay_min == 0.05
        assert context.poll_delay_max == 1.0
        assert context.poll_timeout == 300.0

    def test_explicit_zero_is_kept(self):
        context = ClientContext(
            "http://coordinator:8080",
            poll_delay_min=0,
            poll_timeout=0,
            retry_stop_after_attempts_count=0,
            retry_delay_min=0,
        )

        assert context.poll_delay_min == 0
        assert context.poll_timeout == 0
        assert context.retry_stop_after_attempts_count == 0
        assert context.retry_delay_min == 0

    def test_poll_delay_min_is_clamped_to_max(self):
        context = ClientContext(
            "http://coordinator:8080", poll_delay_min=5, poll_delay_max=2
        )

        assert context.poll_delay_min == 2

    def test_build_from_connect_kwargs(self):
        context = build_client_context(
            "http://coordinator:8080", _poll_delay_min=0, _poll_timeout=10
        )

        assert context.poll_delay_min == 0
        assert context.poll_timeout == 10
