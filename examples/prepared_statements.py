import trino_http
import os

"""
Statements prepared with PREPARE are remembered by the client session and sent along with every
later request, so EXECUTE works on any following query of the same client.
"""

with trino_http.connect(
    server=os.getenv("TRINO_SERVER", "http://localhost:8080"),
    catalog="tpcds",
    schema="sf1",
    auth=trino_http.BasicAuthProvider("test"),
) as trino:

    trino.query(
        "PREPARE list_customers FROM SELECT * FROM customer LIMIT ?"
    ).fold(None, lambda page, acc: acc)
    print("prepared: {}".format(list(trino.session.prepared_statements)))

    rows = trino.query("EXECUTE list_customers USING 3").fold(
        [], lambda page, acc: acc + (page.data or [])
    )
    for row in rows:
        print(row)

    trino.query("DEALLOCATE PREPARE list_customers").fold(None, lambda page, acc: acc)
