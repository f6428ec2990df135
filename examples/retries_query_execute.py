import trino_http
import os

# The retry behaviour is defined in src/trino_http/auth/retry.py
#
# By default statement submissions are only retried for codes 429 and 503, because these are returned
# before the coordinator accepted the statement. Fetching result pages, query info and kill requests are
# idempotent and are also retried for 502 and 504.
#
# Additional HTTP codes to retry statement submissions for are specified as a list passed to
# `_retry_dangerous_codes`. As implied in the name, doing this is *dangerous*: the first submission may have
# reached the coordinator, in which case retrying it runs the statement again. It can be helpful for
# read-only SELECT statements behind a proxy that returns 502 (Bad Gateway).
#
# For complete information about configuring retries, see the docstring for trino_http.client.Trino

with trino_http.connect(server = os.getenv("TRINO_SERVER", "http://localhost:8080"),
                        auth   = trino_http.BasicAuthProvider("test"),
                        _retry_dangerous_codes=[502],
                        _retry_stop_after_attempts_count=10,
                        _retry_stop_after_attempts_duration=120) as trino:

  query = trino.query("SELECT * FROM tpch.tiny.nation LIMIT 2")
  for row in query.rows():
    print(row)
