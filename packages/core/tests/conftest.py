import threading
import time
from typing import Any, Dict, Optional

import pytest

from incsql_adapter_sdk import (
    DatasourceAdapter,
    DatasourceCapability,
    ResultError,
    ResultFrame,
)
from incsql.common.resilience import SCAN_BREAKER
from incsql.schema import InMemoryPartitionCatalog, TablePartitions


class FakeChannel(DatasourceAdapter):
    """Thread-safe channel double that answers scans by exact SQL text.

    A response is either a list of rows, a ``ResultFrame`` or an exception to raise.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        dialect: str = "postgres",
        concurrent: bool = True,
        datasource_id: str = "fake_ds",
    ):
        self.responses = dict(responses or {})
        self.delays: Dict[str, float] = {}
        self.calls = []
        self.completed = []
        self.closed = False
        self._dialect = dialect
        self._concurrent = concurrent
        self._datasource_id = datasource_id
        self._lock = threading.Lock()

    @property
    def datasource_id(self) -> str:
        return self._datasource_id

    def connect(self) -> None:
        return None

    def capabilities(self):
        caps = {DatasourceCapability.SUPPORTS_SQL}
        if self._concurrent:
            caps.add(DatasourceCapability.SUPPORTS_CONCURRENT_SCANS)
        return caps

    def get_dialect(self) -> str:
        return self._dialect

    def fail(
        self, sql: str, message: str = "connection reset by peer", error_code: str = "DB_CONNECTION_ERROR"
    ) -> None:
        self.responses[sql] = ResultFrame.failure(
            ResultError(error_code=error_code, safe_message=message, retryable=error_code != "DB_EXECUTION_ERROR")
        )

    def call_count(self, sql: str) -> int:
        with self._lock:
            return self.calls.count(sql)

    def execute(self, sql: str) -> ResultFrame:
        with self._lock:
            self.calls.append(sql)
            delay = self.delays.get(sql, 0)
            response = self.responses[sql]
        if delay:
            time.sleep(delay)
        with self._lock:
            self.completed.append(sql)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, ResultFrame):
            return response
        width = len(response[0]) if response else 0
        return ResultFrame.from_rows(
            [f"col_{i}" for i in range(width)], response, datasource_id=self.datasource_id
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_scan_breaker():
    SCAN_BREAKER.close()
    yield
    SCAN_BREAKER.close()


@pytest.fixture
def orders_partitions():
    return TablePartitions(
        schema_name="sales",
        table_name="orders",
        partitions=["orders_p0", "orders_p1", "orders_p2", "orders_p3"],
    )


@pytest.fixture
def catalog(orders_partitions):
    store = InMemoryPartitionCatalog()
    store.register(orders_partitions)
    return store


@pytest.fixture
def sum_channel():
    """Partition sums 55, 155, 255, 355."""
    return FakeChannel(
        {
            f"SELECT SUM(amount) FROM sales.orders_p{i}": [[55 + 100 * i]]
            for i in range(4)
        }
    )


@pytest.fixture
def make_channel():
    return FakeChannel
