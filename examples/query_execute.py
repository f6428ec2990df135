import trino_http
import os

with trino_http.connect(
    server=os.getenv("TRINO_SERVER", "http://localhost:8080"),
    catalog="tpcds",
    schema="sf1",
    auth=trino_http.BasicAuthProvider(os.getenv("TRINO_USER", "test")),
) as trino:

    with trino.query("SELECT * FROM customer LIMIT 5") as query:
        for row in query.rows():
            print(row)
