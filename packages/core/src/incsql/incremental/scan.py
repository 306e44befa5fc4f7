"""Execution of a single partition scan statement on the SQL channel."""
from __future__ import annotations

import time

import pybreaker

from incsql_adapter_sdk import DatasourceAdapter, ResultFrame
from incsql.common.errors import ErrorCode, ScanFailure
from incsql.common.logger import get_logger
from incsql.common.resilience import SCAN_BREAKER

from .models import PartitionScanResult

logger = get_logger("partition_scan")


class DatasourceUnavailable(RuntimeError):
    """A failed frame reporting a lost or stalled datasource."""


def scan_partition(channel: DatasourceAdapter, partition_index: int, sql: str) -> PartitionScanResult:
    """Runs one partition statement and returns its rows.

    Only channel exceptions and connection-level failed frames count against
    ``SCAN_BREAKER``. A statement the datasource rejects fails this scan alone.

    Raises:
        ScanFailure: When the channel reports a failure, raises, or the scan
            breaker is open.
    """
    start = time.perf_counter()
    logger.debug(f"Scanning partition {partition_index}: {sql}")
    try:
        @SCAN_BREAKER
        def _execute_guarded() -> ResultFrame:
            frame = channel.execute(sql)
            if not frame.success and frame.error is not None and frame.error.is_connection_error:
                raise DatasourceUnavailable(frame.error.safe_message)
            return frame

        frame = _execute_guarded()
    except pybreaker.CircuitBreakerError as exc:
        logger.error(f"Partition {partition_index} scan rejected: {exc}")
        raise ScanFailure(
            partition_index,
            f"Circuit breaker open: {exc}",
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
        ) from exc
    except Exception as exc:
        logger.error(f"Partition {partition_index} scan failed: {exc}")
        raise ScanFailure(partition_index, str(exc)) from exc

    if not frame.success:
        message = frame.error.safe_message if frame.error else "unknown error"
        logger.error(f"Partition {partition_index} statement rejected: {message}")
        raise ScanFailure(partition_index, message)

    duration_ms = (time.perf_counter() - start) * 1000
    return PartitionScanResult(
        partition_index=partition_index,
        sql=sql,
        columns=frame.column_names,
        column_types=[col.type for col in frame.columns],
        rows=[list(row) for row in frame.rows],
        execution_time_ms=duration_ms,
    )
