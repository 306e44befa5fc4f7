from __future__ import annotations

from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from incsql_adapter_sdk import TableRef
from incsql.schema import PartitionAddressing


class AggregateKind(str, Enum):
    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"


class ExecutionMode(str, Enum):
    SEQUENTIAL = "SEQUENTIAL"
    PARALLEL = "PARALLEL"


class CoordinatorState(str, Enum):
    IDLE = "IDLE"
    PLANNED = "PLANNED"
    ADVANCING = "ADVANCING"
    EXHAUSTED = "EXHAUSTED"


class ProjectionItem(BaseModel):
    """One ``FUNCTION(column)`` item of the client's select list."""

    function_name: str
    column: str
    alias: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class AggregateDescriptor(BaseModel):
    kind: AggregateKind
    source_column: str
    label: str

    model_config = ConfigDict(frozen=True)

    @property
    def physical_width(self) -> int:
        """Number of physical columns the scan statement projects for this aggregate."""
        return 2 if self.kind == AggregateKind.AVG else 1


@dataclass(frozen=True)
class PartitionPlan:
    """Ordered, immutable partition-scoped statements for one incremental query."""

    table: TableRef
    dialect: str
    addressing: PartitionAddressing
    statements: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.statements)

    def __getitem__(self, index: int) -> str:
        return self.statements[index]


@dataclass
class PartitionScanResult:
    partition_index: int
    sql: str
    columns: List[str]
    column_types: List[str]
    rows: List[List[Any]]
    execution_time_ms: float = 0.0


@dataclass
class PendingScan:
    """Queue slot of a partition dispatched to the scan pool.

    ``future`` is cleared when the scan failed; the partition is then rescanned
    synchronously by the next advance call.
    """

    partition_index: int
    future: Optional[Future]


@dataclass
class TaskState:
    query_id: Optional[str] = None
    plan: Optional[PartitionPlan] = None
    cursor: int = 0
    accumulated_rows: List[List[Any]] = field(default_factory=list)
    header: List[str] = field(default_factory=list)
    descriptors: List[AggregateDescriptor] = field(default_factory=list)
    mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    approximate: bool = False
    pending: Deque[PendingScan] = field(default_factory=deque)
    dispatched: bool = False
    status: CoordinatorState = CoordinatorState.IDLE

    @property
    def partition_count(self) -> int:
        return len(self.plan) if self.plan is not None else 0

    def approximate_factor(self) -> float:
        """Extrapolation multiplier for the partitions scanned so far."""
        if not self.approximate or self.cursor == 0:
            return 1
        return self.partition_count / self.cursor
