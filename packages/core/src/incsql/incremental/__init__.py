from .cursor import ResumableRowCursor
from .merger import PartialAggregateMerger, compare_strings
from .models import (
    AggregateDescriptor,
    AggregateKind,
    CoordinatorState,
    ExecutionMode,
    PartitionPlan,
    PartitionScanResult,
    ProjectionItem,
    TaskState,
)
from .planner import PartitionPlanGenerator, default_addressing
from .pool import ParallelScanPool
from .coordinator import TaskCoordinator

__all__ = [
    "ResumableRowCursor",
    "PartialAggregateMerger",
    "compare_strings",
    "AggregateDescriptor",
    "AggregateKind",
    "CoordinatorState",
    "ExecutionMode",
    "PartitionPlan",
    "PartitionScanResult",
    "ProjectionItem",
    "TaskState",
    "PartitionPlanGenerator",
    "default_addressing",
    "ParallelScanPool",
    "TaskCoordinator",
]
