"""Unit test environment helpers."""

import pytest

_CONFIG_VARS = (
    "READONLY",
    "SQL_CONNECTION_URL",
    "SQL_SERVER",
    "SQL_DATABASE",
    "SQL_USER",
    "SQL_PASSWORD",
    "SQL_PORT",
    "SQL_ENCRYPT",
    "SQL_TRUST_CERT",
    "SQL_DRIVER",
    "QUERY_TIMEOUT",
    "MAX_ROWS",
    "POOL_MIN",
    "POOL_MAX",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Start every unit test from an empty server configuration."""
    for name in _CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DAL_TRACE_QUERIES", "true")
    yield


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Reset global Database state after each test."""
    from dal.database import Database

    original_settings = Database._settings
    original_executor = Database._executor

    yield

    Database._settings = original_settings
    Database._executor = original_executor


class FakeCursorResult:
    """Stand-in for the driver's per-batch result."""

    def __init__(self, rows=None, description=None, rowcount=-1):
        self.rows = list(rows or [])
        self.description = description
        self.rowcount = rowcount


class FakeConnection:
    """Connection double that replays scripted results and records every call."""

    def __init__(self, results=()):
        self.results = list(results)
        self.calls = []
        self.bind_types = []

    async def run(self, sql, values=(), bind_types=()):
        self.calls.append((sql, list(values)))
        self.bind_types.append(list(bind_types))
        outcome = self.results.pop(0) if self.results else FakeCursorResult()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def statements(self):
        return [sql for sql, _ in self.calls]


def rows_result(*rows):
    """Build a cursor result whose description mirrors the first row's keys."""
    description = [(key, str) for key in rows[0]] if rows else [("value", str)]
    return FakeCursorResult(rows=list(rows), description=description)


@pytest.fixture
def fake_connection():
    """Factory building a FakeConnection plus a connection factory for QueryExecutor."""
    from contextlib import asynccontextmanager

    def _build(*results):
        conn = FakeConnection(results)

        @asynccontextmanager
        async def factory():
            yield conn

        return conn, factory

    return _build


@pytest.fixture
def install_executor(fake_connection):
    """Install a QueryExecutor backed by scripted results on ``Database``."""
    from common.config.settings import Settings
    from dal.database import Database
    from dal.execution import QueryExecutor

    def _install(*results, read_only=True, max_rows=1000):
        conn, factory = fake_connection(*results)
        settings = Settings(
            read_only=read_only,
            server="localhost",
            database="appdb",
            user="app",
            password="secret",
            max_rows=max_rows,
        )
        Database._settings = settings
        Database._executor = QueryExecutor(settings, factory)
        return conn

    return _install


@pytest.fixture
def cursor_rows():
    """Return the ``rows_result`` builder."""
    return rows_result


@pytest.fixture
def cursor_result():
    """Return the ``FakeCursorResult`` class."""
    return FakeCursorResult
