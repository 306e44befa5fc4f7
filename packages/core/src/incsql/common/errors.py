from enum import Enum
from typing import Any, Optional

from incsql_adapter_sdk import ResultError


class ErrorSeverity(str, Enum):
    """Severity levels for engine errors."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCode(str, Enum):
    """Standardized error codes for the incremental engine."""
    NOT_PARTITIONED = "NOT_PARTITIONED"
    UNSUPPORTED_AGGREGATE = "UNSUPPORTED_AGGREGATE"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    SCAN_FAILURE = "SCAN_FAILURE"
    CURSOR_NOT_POSITIONED = "CURSOR_NOT_POSITIONED"
    INVALID_STATEMENT = "INVALID_STATEMENT"
    INVALID_STATE = "INVALID_STATE"
    CATALOG_ERROR = "CATALOG_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


FATAL_ERRORS = {
    ErrorCode.NOT_PARTITIONED,
    ErrorCode.UNSUPPORTED_AGGREGATE,
    ErrorCode.UNSUPPORTED_TYPE,
    ErrorCode.INVALID_STATEMENT,
    ErrorCode.INVALID_STATE,
}

SAFE_ERROR_MESSAGES = {
    ErrorCode.SCAN_FAILURE: "A partition scan failed; the query can be resumed.",
    ErrorCode.CATALOG_ERROR: "The partition catalog could not be read.",
    ErrorCode.SERVICE_UNAVAILABLE: "The datasource is temporarily unavailable.",
}


class IncrementalQueryError(Exception):
    """Base error raised by the incremental engine.

    Attributes:
        message (str): A human-readable error message.
        error_code (ErrorCode): The standardized error code.
        severity (ErrorSeverity): The severity of the error.
        details (Optional[Any]): Additional context or metadata.
    """

    error_code: ErrorCode = ErrorCode.INVALID_STATE
    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[ErrorCode] = None,
        severity: Optional[ErrorSeverity] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if severity is not None:
            self.severity = severity
        self.details = details

    @property
    def is_retryable(self) -> bool:
        """Determines if the failed call may simply be issued again."""
        if self.severity == ErrorSeverity.CRITICAL:
            return False
        return self.error_code not in FATAL_ERRORS

    def get_safe_message(self) -> str:
        """Returns a sanitized error message safe for exposure to clients.

        If a safe mapping exists for the error code, it is returned.
        Otherwise, the error message itself is used.
        """
        return SAFE_ERROR_MESSAGES.get(self.error_code, self.message)

    def to_result_error(self) -> ResultError:
        return ResultError(
            error_code=self.error_code.value,
            safe_message=self.get_safe_message(),
            severity=self.severity.value,
            retryable=self.is_retryable,
        )


class NotPartitionedError(IncrementalQueryError):
    error_code = ErrorCode.NOT_PARTITIONED
    severity = ErrorSeverity.CRITICAL

    def __init__(self, table: str, reason: str = "no partition metadata exists"):
        super().__init__(
            f"Incremental queries can only run on partitioned tables: {table} ({reason}).",
            details={"table": table},
        )
        self.table = table


class UnsupportedAggregateError(IncrementalQueryError):
    error_code = ErrorCode.UNSUPPORTED_AGGREGATE
    severity = ErrorSeverity.CRITICAL

    def __init__(self, function_name: str):
        super().__init__(
            f"Unsupported aggregate function for incremental execution: {function_name}",
            details={"function": function_name},
        )
        self.function_name = function_name


class UnsupportedTypeError(IncrementalQueryError):
    error_code = ErrorCode.UNSUPPORTED_TYPE

    def __init__(self, type_name: str, column: Optional[str] = None):
        target = f" in column '{column}'" if column else ""
        super().__init__(
            f"Not supported data type{target}: {type_name}",
            details={"type": type_name, "column": column},
        )
        self.type_name = type_name


class ScanFailure(IncrementalQueryError):
    error_code = ErrorCode.SCAN_FAILURE

    def __init__(self, partition_index: int, message: str, *, error_code: Optional[ErrorCode] = None):
        super().__init__(
            f"Scan of partition {partition_index} failed: {message}",
            error_code=error_code,
            details={"partition_index": partition_index},
        )
        self.partition_index = partition_index


class CursorNotPositionedError(IncrementalQueryError):
    error_code = ErrorCode.CURSOR_NOT_POSITIONED


class InvalidStatementError(IncrementalQueryError):
    error_code = ErrorCode.INVALID_STATEMENT


class InvalidStateError(IncrementalQueryError):
    error_code = ErrorCode.INVALID_STATE


class CatalogError(IncrementalQueryError):
    error_code = ErrorCode.CATALOG_ERROR


class ResourceLeakWarning(ResourceWarning):
    """Partition scans were abandoned while still running in the pool."""
