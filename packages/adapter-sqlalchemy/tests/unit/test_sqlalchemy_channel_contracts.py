from unittest.mock import MagicMock

import pytest
from sqlalchemy import exc as sa_exc

from incsql_adapter_sdk import DatasourceCapability
from incsql_sqlalchemy_adapter import BaseSQLAlchemyAdapter
from incsql_sqlalchemy_adapter.adapter import _execution_error_code


def test_execute_requires_connection():
    # Validates the disconnected state because scans need an engine.
    # Arrange
    adapter = BaseSQLAlchemyAdapter(datasource_id="ds1")

    # Act & Assert
    with pytest.raises(RuntimeError, match="Not connected"):
        adapter.execute("SELECT 1")


def test_connect_requires_connection_string():
    # Validates configuration errors because an engine needs a URL.
    # Arrange
    adapter = BaseSQLAlchemyAdapter(datasource_id="ds1")

    # Act & Assert
    with pytest.raises(ValueError, match="Connection string is required"):
        adapter.connect()


def test_sqlite_engine_allows_cross_thread_connections(monkeypatch):
    # Validates engine options because pooled scans run on worker threads.
    # Arrange
    create = MagicMock()
    monkeypatch.setattr("incsql_sqlalchemy_adapter.adapter.create_engine", create)

    # Act
    BaseSQLAlchemyAdapter(connection_string="sqlite:///warehouse.db", datasource_id="ds1")

    # Assert
    _, kwargs = create.call_args
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["connect_args"]["check_same_thread"] is False


def test_non_sqlite_engine_keeps_connect_args(monkeypatch):
    # Validates engine options because other drivers reject sqlite-only arguments.
    # Arrange
    create = MagicMock()
    monkeypatch.setattr("incsql_sqlalchemy_adapter.adapter.create_engine", create)

    # Act
    BaseSQLAlchemyAdapter(
        connection_string="postgresql://user:pw@localhost/db",
        engine_kwargs={"pool_size": 8},
    )

    # Assert
    _, kwargs = create.call_args
    assert "connect_args" not in kwargs
    assert kwargs["pool_size"] == 8


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgresql://u:p@h/db", "postgres"),
        ("mssql+pyodbc://u:p@h/db", "tsql"),
        ("mysql+pymysql://u:p@h/db", "mysql"),
        ("sqlite:///x.db", "sqlite"),
    ],
)
def test_dialect_is_normalized_without_engine(url, expected):
    # Validates dialect names because the planner renders SQL per sqlglot dialect.
    # Arrange
    adapter = BaseSQLAlchemyAdapter(datasource_id="ds1")
    adapter.connection_string = url

    # Act & Assert
    assert adapter.get_dialect() == expected


@pytest.mark.parametrize(
    "url,concurrent",
    [
        ("sqlite://", False),
        ("sqlite:///:memory:", False),
        ("sqlite:///warehouse.db", True),
        ("postgresql://u:p@h/db", True),
    ],
)
def test_concurrent_scan_capability(url, concurrent):
    # Validates capabilities because in-memory databases are private to one connection.
    # Arrange
    adapter = BaseSQLAlchemyAdapter(datasource_id="ds1")
    adapter.connection_string = url

    # Act
    caps = adapter.capabilities()

    # Assert
    assert DatasourceCapability.SUPPORTS_SQL in caps
    assert (DatasourceCapability.SUPPORTS_CONCURRENT_SCANS in caps) is concurrent


def test_unreachable_datasource_is_reported_as_connection_error():
    # Validates failure classification because only an unreachable datasource may trip the scan breaker.
    # Arrange
    adapter = BaseSQLAlchemyAdapter(datasource_id="ds1")
    adapter.engine = MagicMock()
    adapter.engine.connect.side_effect = sa_exc.OperationalError(
        None, None, Exception("could not connect to server")
    )

    # Act
    result = adapter.execute("SELECT 1")

    # Assert
    assert result.success is False
    assert result.error.error_code == "DB_CONNECTION_ERROR"
    assert result.error.stage == "connect"
    assert result.error.retryable is True
    assert result.error.is_connection_error is True


@pytest.mark.parametrize(
    "exc,expected",
    [
        (sa_exc.OperationalError("SELECT q", {}, Exception("no such column: q")), "DB_EXECUTION_ERROR"),
        (sa_exc.ProgrammingError("SELECT", {}, Exception("syntax error")), "DB_EXECUTION_ERROR"),
        (
            sa_exc.OperationalError("SELECT 1", {}, Exception("server closed"), connection_invalidated=True),
            "DB_CONNECTION_ERROR",
        ),
        (sa_exc.TimeoutError("QueuePool limit of size 5 overflow 10 reached"), "DB_CONNECTION_ERROR"),
        (sa_exc.OperationalError("SELECT 1", {}, Exception("Query timed out")), "DB_TIMEOUT"),
    ],
)
def test_statement_errors_are_separated_from_connection_errors(exc, expected):
    # Validates failure classification because bad statements are the caller's problem, not an outage.
    # Act & Assert
    assert _execution_error_code(exc) == expected
