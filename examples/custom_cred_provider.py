import trino_http
from trino_http.auth.authenticators import CredentialsProvider, HeaderFactory
import os


class EnvironmentTokenProvider(CredentialsProvider):
    """Reads a fresh bearer token from the environment for every request."""

    def auth_type(self) -> str:
        return "env-token"

    def __call__(self, *args, **kwargs) -> HeaderFactory:
        def header_factory():
            return {"Authorization": "Bearer {}".format(os.environ["TRINO_TOKEN"])}

        return header_factory


with trino_http.connect(server = os.getenv("TRINO_SERVER", "https://localhost:8443"),
                        user = os.getenv("TRINO_USER"),
                        credentials_provider=EnvironmentTokenProvider()) as trino:

    for x in range(1, 5):
        query = trino.query('SELECT 1+1')
        for row in query.rows():
            print(row)
