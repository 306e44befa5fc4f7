# incsql package

from .public_api import IncrementalSQL
from .context import IncrementalContext

from .common.errors import (
    ErrorCode,
    ErrorSeverity,
    IncrementalQueryError,
    NotPartitionedError,
    UnsupportedAggregateError,
    UnsupportedTypeError,
    ScanFailure,
    CursorNotPositionedError,
    InvalidStatementError,
    InvalidStateError,
    CatalogError,
    ResourceLeakWarning,
)
from .incremental import CoordinatorState, ExecutionMode, TaskCoordinator
from .schema import PartitionAddressing, TablePartitions

__all__ = [
    "IncrementalSQL",
    "IncrementalContext",
    "ErrorCode",
    "ErrorSeverity",
    "IncrementalQueryError",
    "NotPartitionedError",
    "UnsupportedAggregateError",
    "UnsupportedTypeError",
    "ScanFailure",
    "CursorNotPositionedError",
    "InvalidStatementError",
    "InvalidStateError",
    "CatalogError",
    "ResourceLeakWarning",
    "CoordinatorState",
    "ExecutionMode",
    "TaskCoordinator",
    "PartitionAddressing",
    "TablePartitions",
]
