from incsql.common.errors import (
    CatalogError,
    ErrorCode,
    ErrorSeverity,
    InvalidStatementError,
    NotPartitionedError,
    ScanFailure,
    UnsupportedAggregateError,
    UnsupportedTypeError,
)
from incsql.common.settings import Settings


def test_planning_errors_are_not_retryable():
    # Validates retry classification because fatal errors must not be retried blindly.
    # Act
    not_partitioned = NotPartitionedError("[sales].[orders]")
    unsupported = UnsupportedAggregateError("STDDEV")
    invalid = InvalidStatementError("bad")

    # Assert
    assert not_partitioned.severity == ErrorSeverity.CRITICAL
    assert not_partitioned.is_retryable is False
    assert unsupported.is_retryable is False
    assert "STDDEV" in unsupported.message
    assert invalid.is_retryable is False


def test_scan_failure_is_retryable_and_sanitized():
    # Validates client messages because driver errors may leak internals.
    # Act
    failure = ScanFailure(3, "password authentication failed for user admin")
    envelope = failure.to_result_error()

    # Assert
    assert failure.is_retryable is True
    assert failure.details == {"partition_index": 3}
    assert envelope.error_code == ErrorCode.SCAN_FAILURE.value
    assert envelope.safe_message == "A partition scan failed; the query can be resumed."
    assert envelope.retryable is True


def test_error_code_override():
    # Validates code overrides because breaker rejections reuse the scan failure type.
    # Act
    failure = ScanFailure(0, "breaker open", error_code=ErrorCode.SERVICE_UNAVAILABLE)

    # Assert
    assert failure.error_code == ErrorCode.SERVICE_UNAVAILABLE
    assert failure.get_safe_message() == "The datasource is temporarily unavailable."


def test_unsupported_type_names_column():
    # Validates type errors because users need to know which aggregate failed.
    # Act
    error = UnsupportedTypeError("datetime", "MIN")

    # Assert
    assert error.message == "Not supported data type in column 'MIN': datetime"
    assert error.is_retryable is False


def test_catalog_error_keeps_message_when_unmapped():
    # Validates safe messages because only mapped codes are rewritten.
    # Act
    error = InvalidStatementError("Incremental queries do not support GROUP BY.")

    # Assert
    assert error.get_safe_message() == "Incremental queries do not support GROUP BY."
    assert CatalogError("disk").get_safe_message() == "The partition catalog could not be read."


def test_settings_read_environment(monkeypatch):
    # Validates configuration because deployments tune workers and breaker limits by env.
    # Arrange
    monkeypatch.setenv("INCSQL_PARALLEL_WORKERS", "8")
    monkeypatch.setenv("INCSQL_DATASOURCE_URL", "sqlite:///warehouse.db")
    monkeypatch.setenv("INCSQL_SCAN_BREAKER_FAIL_MAX", "2")

    # Act
    settings = Settings()

    # Assert
    assert settings.parallel_scan_workers == 8
    assert settings.datasource_url == "sqlite:///warehouse.db"
    assert settings.scan_breaker_fail_max == 2
    assert settings.default_schema == "public"
