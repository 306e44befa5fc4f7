import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from incsql_sqlalchemy_adapter import BaseSQLAlchemyAdapter


@pytest.fixture()
def sqlite_db_path(tmp_path):
    db_path = tmp_path / "test.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, score REAL)")
        conn.executemany(
            "INSERT INTO users (name, score) VALUES (?, ?)",
            [("Ada", 3.5), ("Linus", 4.0), ("Grace", None)],
        )
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture()
def sqlite_adapter(sqlite_db_path):
    adapter = BaseSQLAlchemyAdapter(
        connection_string=f"sqlite:///{sqlite_db_path}",
        datasource_id="sqlite_test",
    )
    yield adapter
    adapter.close()


def test_execute_returns_rows_types_and_metrics(sqlite_adapter):
    # Validates real execution because partition scans read frames from this channel.
    # Act
    result = sqlite_adapter.execute("SELECT id, name, score FROM users ORDER BY id")

    # Assert
    assert result.success is True
    assert result.row_count == 3
    assert result.column_names == ["id", "name", "score"]
    assert [col.type for col in result.columns] == ["int", "str", "float"]
    assert result.rows[0] == [1, "Ada", 3.5]
    assert result.datasource_id == "sqlite_test"
    assert result.execution_stats["execution_time_ms"] >= 0


def test_execute_failure_is_returned_as_frame(sqlite_adapter):
    # Validates error normalization because the scan layer inspects failed frames.
    # Act
    result = sqlite_adapter.execute("SELECT * FROM missing_table")

    # Assert
    assert result.success is False
    assert result.error.error_code == "DB_EXECUTION_ERROR"
    assert "missing_table" in result.error.safe_message
    assert result.error.stage == "execute"
    assert result.error.retryable is False
    assert result.error.is_connection_error is False


def test_execute_from_several_threads(sqlite_adapter):
    # Validates concurrent use because parallel scans share one channel.
    # Arrange
    statements = [f"SELECT COUNT(*) FROM users WHERE id <= {i}" for i in range(1, 4)] * 4

    # Act
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(sqlite_adapter.execute, statements))

    # Assert
    assert all(r.success for r in results)
    assert [r.rows[0][0] for r in results] == [1, 2, 3] * 4


def test_dialect_from_engine(sqlite_adapter):
    # Validates dialect reporting because the planner picks addressing by dialect.
    # Act & Assert
    assert sqlite_adapter.get_dialect() == "sqlite"
