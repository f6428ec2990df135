import trino_http
import os, threading, time

"""
A running query may be killed from any thread by passing its id to `Trino.cancel()`, as shown
in the example below. The query handle reports the cancellation as a failed page on its next poll.
"""

with trino_http.connect(server = os.getenv("TRINO_SERVER", "http://localhost:8080"),
                        catalog = "tpcds",
                        schema  = "sf100000",
                        auth    = trino_http.BasicAuthProvider("test")) as trino:

  query = trino.query("SELECT * FROM customer CROSS JOIN web_sales")
  query.next()

  def consume_pages():
      pages = query.fold([], lambda page, acc: acc + [page])
      error = pages[-1].error
      if error is not None:
          print("\n It looks like this query was cancelled: {}".format(error.error_name))

  consume_thread = threading.Thread(target=consume_pages)

  print("\n Beginning to consume long query")
  consume_thread.start()

  print("\n Waiting 5 seconds before canceling", end="", flush=True)

  seconds_waited = 0
  while seconds_waited < 5:
    seconds_waited += 1
    print(".", end="", flush=True)
    time.sleep(1)

  print("\n Cancelling query {}. This can take a few seconds.".format(query.query_id))
  trino.cancel(query.query_id)

  consume_thread.join(30)
  assert not consume_thread.is_alive()

  info = trino.query_info(query.query_id)
  print("\n The server reports the query as {}".format(info.state.value))
