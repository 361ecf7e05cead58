"""
Shared test configuration and fixtures.

Provides a ``store`` fixture parametrized over every backend so the
contract tests run against memory, file and DuckDB stores alike.
"""

import pytest

from session_msgstore import FileStoreFactory, MemoryStoreFactory
from session_msgstore.backends import DuckDBStoreFactory

SESSION_ID = "FIX.4.4-SENDER-TARGET"

FACTORIES = {
    "memory": MemoryStoreFactory,
    "file": FileStoreFactory,
    "duckdb": DuckDBStoreFactory,
}


def settings_for(backend: str, tmp_path) -> dict[str, str]:
    """Settings map pointing a backend at the test's temp directory."""
    if backend == "file":
        return {"storage_directory": str(tmp_path / "store")}
    if backend == "duckdb":
        return {"duckdb_path": str(tmp_path / "store.duckdb")}
    return {}


@pytest.fixture(params=sorted(FACTORIES))
def backend(request, tmp_path):
    """(factory, settings) for each backend."""
    return FACTORIES[request.param](), settings_for(request.param, tmp_path)


@pytest.fixture(params=["file", "duckdb"])
def durable_backend(request, tmp_path):
    """(factory, settings) for backends that survive close/reopen."""
    return FACTORIES[request.param](), settings_for(request.param, tmp_path)


@pytest.fixture
def store(backend):
    """An open store for SESSION_ID on each backend."""
    factory, settings = backend
    msg_store = factory.create(SESSION_ID, settings)
    yield msg_store
    msg_store.close()


@pytest.fixture
def storage_dir(tmp_path):
    """Directory for file-store tests."""
    return tmp_path / "store"
