"""Shared fixtures: an isolated data directory with a bootstrapped admin."""

from pathlib import Path

import pytest

from csvdb.auth import AccountStore
from csvdb.catalog import Catalog
from csvdb.interpreter import QueryInterpreter
from csvdb.paths import StorageLayout


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def layout(data_root: Path) -> StorageLayout:
    return StorageLayout(data_root)


@pytest.fixture
def store(layout: StorageLayout) -> AccountStore:
    """Account store with the admin account already created."""
    store = AccountStore(layout)
    store.ensure_bootstrap()
    return store


@pytest.fixture
def catalog(layout: StorageLayout) -> Catalog:
    return Catalog(layout)


@pytest.fixture
def interpreter(store: AccountStore, catalog: Catalog) -> QueryInterpreter:
    return QueryInterpreter(store, catalog)


@pytest.fixture
def admin(interpreter: QueryInterpreter) -> QueryInterpreter:
    """Interpreter logged in as admin, no database open."""
    interpreter.login_with("admin", "admin")
    return interpreter


def run_all(interpreter: QueryInterpreter, *lines: str) -> list[str]:
    """Execute several command lines and collect their results."""
    return [interpreter.execute_query(line) for line in lines]
