import time
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import Engine, create_engine, text
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import make_url

from incsql_adapter_sdk import (
    CONNECTION_ERROR_CODES,
    DatasourceAdapter,
    DatasourceCapability,
    ResultError,
    ResultFrame,
    normalize_dialect,
)
import logging
logger = logging.getLogger(__name__)


def _python_type_name(rows: List[List[Any]], index: int) -> str:
    for row in rows:
        value = row[index]
        if value is not None:
            return type(value).__name__
    return "unknown"


def _execution_error_code(exc: Exception) -> str:
    """Separates a lost or stalled datasource from an error in the statement itself."""
    if isinstance(exc, (sa_exc.DisconnectionError, sa_exc.TimeoutError)):
        return "DB_CONNECTION_ERROR"
    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return "DB_CONNECTION_ERROR"
    message = str(exc).lower()
    if "timed out" in message or "timeout expired" in message:
        return "DB_TIMEOUT"
    return "DB_EXECUTION_ERROR"


class BaseSQLAlchemyAdapter(DatasourceAdapter):
    """
    SQL execution channel backed by a SQLAlchemy engine.
    Every execute() checks out its own pooled connection, so partition scans
    running on different threads never share a DBAPI connection.
    """
    def __init__(
        self,
        connection_string: str = None,
        datasource_id: str = None,
        engine_kwargs: Optional[Dict[str, Any]] = None,
    ):
        self.connection_string = connection_string
        self._datasource_id = datasource_id or "default"
        self.engine_kwargs = engine_kwargs or {}
        self.engine: Engine = None
        if connection_string:
            self.connect()

    def __str__(self):
        return f"{self.datasource_id} ({self.get_dialect() if self.engine else 'disconnected'})"

    @property
    def datasource_id(self) -> str:
        return self._datasource_id

    def connect(self) -> None:
        conn_str = self.connection_string
        if not conn_str:
            raise ValueError(f"Connection string is required for {self.datasource_id}")
        kwargs = dict(self.engine_kwargs)
        if make_url(conn_str).get_backend_name() == "sqlite":
            connect_args = dict(kwargs.pop("connect_args", {}))
            connect_args.setdefault("check_same_thread", False)
            kwargs["connect_args"] = connect_args
        try:
            self.engine = create_engine(conn_str, pool_pre_ping=True, **kwargs)
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    def execute(self, sql: str) -> ResultFrame:
        if not self.engine:
            raise RuntimeError(f"Not connected to {self.datasource_id}")

        start = time.perf_counter()
        try:
            conn = self.engine.connect()
        except Exception as e:
            logger.error(f"Could not reach {self.datasource_id}: {e}")
            return self._failure("DB_CONNECTION_ERROR", e, stage="connect")

        try:
            with conn:
                result = conn.execute(text(sql))
                if result.returns_rows:
                    rows = [list(row) for row in result.fetchall()]
                    cols = list(result.keys())
                else:
                    rows = []
                    cols = []
        except Exception as e:
            logger.warning(f"Statement failed on {self.datasource_id}: {e}")
            return self._failure(_execution_error_code(e), e, stage="execute")

        duration = time.perf_counter() - start
        return ResultFrame.from_rows(
            cols,
            rows,
            column_types=[_python_type_name(rows, i) for i in range(len(cols))],
            datasource_id=self.datasource_id,
            execution_stats={"execution_time_ms": duration * 1000},
        )

    def _failure(self, error_code: str, exc: Exception, stage: str) -> ResultFrame:
        return ResultFrame.failure(
            ResultError(
                error_code=error_code,
                safe_message=str(exc),
                retryable=error_code in CONNECTION_ERROR_CODES,
                stage=stage,
                datasource_id=self.datasource_id,
            ),
            datasource_id=self.datasource_id,
        )

    def get_dialect(self) -> str:
        if not self.engine:
            return normalize_dialect(make_url(self.connection_string).get_backend_name())
        return normalize_dialect(self.engine.dialect.name)

    def capabilities(self) -> Set[DatasourceCapability]:
        caps = {DatasourceCapability.SUPPORTS_SQL}
        url = make_url(self.connection_string)
        in_memory_sqlite = url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")
        if not in_memory_sqlite:
            caps.add(DatasourceCapability.SUPPORTS_CONCURRENT_SCANS)
        return caps

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
