import os
import pytest


@pytest.fixture(scope="session")
def server():
    return os.getenv("TRINO_SERVER")


@pytest.fixture(scope="session")
def user():
    return os.getenv("TRINO_USER", "test")


@pytest.fixture(scope="session")
def catalog():
    return os.getenv("TRINO_CATALOG", "tpcds")


@pytest.fixture(scope="session")
def schema():
    return os.getenv("TRINO_SCHEMA", "sf100000")


@pytest.fixture(scope="session")
def connection_details(server, user, catalog, schema):
    return {
        "server": server,
        "user": user,
        "catalog": catalog,
        "schema": schema,
    }
