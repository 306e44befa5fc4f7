import pybreaker
import pytest

from incsql.common.errors import ErrorCode, ScanFailure
from incsql.common.resilience import SCAN_BREAKER, create_breaker
from incsql.incremental.scan import scan_partition
from incsql_adapter_sdk import ResultFrame

SQL = "SELECT SUM(amount) FROM sales.orders_p0"


def test_scan_returns_rows_and_types(make_channel):
    # Validates scan results because the coordinator appends rows as returned.
    # Arrange
    channel = make_channel(
        {SQL: ResultFrame.from_rows(["sum"], [[55]], column_types=["int"])}
    )

    # Act
    result = scan_partition(channel, 0, SQL)

    # Assert
    assert result.partition_index == 0
    assert result.sql == SQL
    assert result.columns == ["sum"]
    assert result.column_types == ["int"]
    assert result.rows == [[55]]
    assert result.execution_time_ms >= 0


def test_failed_frame_becomes_scan_failure(make_channel):
    # Validates failure normalization because adapters report errors in the frame.
    # Arrange
    channel = make_channel()
    channel.fail(SQL, "relation does not exist", error_code="DB_EXECUTION_ERROR")

    # Act & Assert
    with pytest.raises(ScanFailure, match="relation does not exist") as excinfo:
        scan_partition(channel, 0, SQL)
    assert excinfo.value.error_code == ErrorCode.SCAN_FAILURE


def test_raised_exception_becomes_scan_failure(make_channel):
    # Validates failure normalization because adapters may also raise.
    # Arrange
    channel = make_channel({SQL: OSError("network unreachable")})

    # Act & Assert
    with pytest.raises(ScanFailure, match="network unreachable"):
        scan_partition(channel, 0, SQL)


def test_open_breaker_fails_fast(make_channel):
    # Validates fail-fast behavior because a dead datasource must not be hammered.
    # Arrange
    channel = make_channel({SQL: [[55]]})
    SCAN_BREAKER.open()

    # Act
    with pytest.raises(ScanFailure) as excinfo:
        scan_partition(channel, 0, SQL)

    # Assert
    assert excinfo.value.error_code == ErrorCode.SERVICE_UNAVAILABLE
    assert excinfo.value.get_safe_message() == "The datasource is temporarily unavailable."
    assert channel.calls == []


def test_repeated_failures_trip_breaker(make_channel):
    # Validates breaker accounting because connection failures count against the datasource.
    # Arrange
    channel = make_channel()
    channel.fail(SQL)
    codes = []

    # Act
    for _ in range(SCAN_BREAKER.fail_max + 1):
        with pytest.raises(ScanFailure) as excinfo:
            scan_partition(channel, 0, SQL)
        codes.append(excinfo.value.error_code)

    # Assert
    assert SCAN_BREAKER.current_state == pybreaker.STATE_OPEN
    assert codes[-1] == ErrorCode.SERVICE_UNAVAILABLE
    assert codes[0] == ErrorCode.SCAN_FAILURE


def test_rejected_statements_do_not_trip_breaker(make_channel):
    # Validates breaker accounting because a bad client statement is not a datasource outage.
    # Arrange
    channel = make_channel()
    channel.fail(SQL, "no such column: q", error_code="DB_EXECUTION_ERROR")
    codes = []

    # Act
    for _ in range(SCAN_BREAKER.fail_max + 2):
        with pytest.raises(ScanFailure, match="no such column: q") as excinfo:
            scan_partition(channel, 0, SQL)
        codes.append(excinfo.value.error_code)

    # Assert
    assert SCAN_BREAKER.current_state == pybreaker.STATE_CLOSED
    assert SCAN_BREAKER.fail_counter == 0
    assert set(codes) == {ErrorCode.SCAN_FAILURE}
    assert channel.call_count(SQL) == SCAN_BREAKER.fail_max + 2


def test_raised_exceptions_trip_breaker(make_channel):
    # Validates breaker accounting because a channel that raises is treated as unreachable.
    # Arrange
    channel = make_channel({SQL: OSError("network unreachable")})

    # Act
    for _ in range(SCAN_BREAKER.fail_max):
        with pytest.raises(ScanFailure):
            scan_partition(channel, 0, SQL)

    # Assert
    assert SCAN_BREAKER.current_state == pybreaker.STATE_OPEN


def test_create_breaker_applies_settings():
    # Validates the breaker factory because thresholds come from configuration.
    # Act
    breaker = create_breaker("TEST_BREAKER", fail_max=2, reset_timeout=7)

    # Assert
    assert breaker.name == "TEST_BREAKER"
    assert breaker.fail_max == 2
    assert breaker.reset_timeout == 7
