import trino_http
import os
import logging


logger = logging.getLogger("trino_http")
logger.setLevel(logging.DEBUG)
fh = logging.FileHandler("trinohttplogs.log")
fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(process)d %(thread)d %(message)s"))
fh.setLevel(logging.DEBUG)
logger.addHandler(fh)

with trino_http.connect(
    server=os.getenv("TRINO_SERVER", "http://localhost:8080"),
    catalog="tpcds",
    schema="sf1",
    auth=trino_http.BasicAuthProvider("test"),
    _poll_delay_max=0.5,
) as trino:

    query = trino.query("SELECT * FROM customer LIMIT 20000")
    try:
        for page in query:
            print(f"page of query {page.id}: {len(page.data or [])} rows")
    except trino_http.exc.QueryTimeoutError as e:
        print(f"error: {e}")
        query.close()
