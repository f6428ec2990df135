import trino_http
import os

"""
A transactional client may START TRANSACTION; the server answers with a transaction id. The session keeps it and
sends it with every following request until COMMIT or ROLLBACK clears it again.
"""


def run(trino, sql):
    return trino.query(sql).fold([], lambda page, acc: acc + (page.data or []), raise_on_error=True)


with trino_http.connect(
    server=os.getenv("TRINO_SERVER", "http://localhost:8080"),
    catalog="memory",
    schema="default",
    auth=trino_http.BasicAuthProvider("test"),
    transactional=True,
) as trino:

    run(trino, "CREATE TABLE IF NOT EXISTS orders (id bigint, amount double)")

    run(trino, "START TRANSACTION")
    print("transaction: {}".format(trino.session.transaction_id))
    try:
        run(trino, "INSERT INTO orders VALUES (1, 9.99)")
        run(trino, "COMMIT")
    except trino_http.ServerOperationError as e:
        print("rolling back: {}".format(e))
        run(trino, "ROLLBACK")

    print("transaction after commit: {}".format(trino.session.transaction_id))
    print(run(trino, "SELECT count(*) FROM orders"))
