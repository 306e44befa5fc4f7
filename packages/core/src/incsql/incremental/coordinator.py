"""Task coordinator: the per-connection incremental query state machine.

``IDLE -> PLANNED -> ADVANCING -> EXHAUSTED``. Each call scans exactly one
partition, appends its partial row, and re-merges every accumulated row. In
parallel mode the partitions after the first are dispatched to the scan pool
and consumed strictly from the head of the pending queue.
"""
from __future__ import annotations

import uuid
import warnings
from typing import TYPE_CHECKING, Any, List, Optional

from incsql_adapter_sdk import DatasourceAdapter, DatasourceCapability, ResultFrame
from incsql.common.errors import InvalidStateError, InvalidStatementError, ResourceLeakWarning, ScanFailure
from incsql.common.logger import get_logger, query_context
from incsql.common.settings import settings
from incsql.schema import PartitionCatalog

from .merger import PartialAggregateMerger
from .models import CoordinatorState, ExecutionMode, PartitionScanResult, TaskState
from .planner import PartitionPlanGenerator
from .pool import ParallelScanPool
from .scan import scan_partition

if TYPE_CHECKING:
    from incsql.sql.statements import AggregateQuery

logger = get_logger("task_coordinator")


def _type_name(value: Any) -> str:
    return type(value).__name__ if value is not None else "unknown"


class TaskCoordinator:
    """Drives one incremental query at a time over a single SQL channel.

    Not reentrant: starting a new query silently replaces the active one.
    """

    def __init__(
        self,
        channel: DatasourceAdapter,
        catalog: PartitionCatalog,
        pool: Optional[ParallelScanPool] = None,
        planner: Optional[PartitionPlanGenerator] = None,
        merger: Optional[PartialAggregateMerger] = None,
        default_schema: Optional[str] = None,
    ):
        self.channel = channel
        self.catalog = catalog
        self.pool = pool or ParallelScanPool()
        self.planner = planner or PartitionPlanGenerator(catalog, channel.get_dialect())
        self.merger = merger or PartialAggregateMerger()
        self.default_schema = default_schema or settings.default_schema
        self._state = TaskState()

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def status(self) -> CoordinatorState:
        return self._state.status

    def has_pending_scans(self) -> bool:
        return any(
            slot.future is not None and not slot.future.done() for slot in self._state.pending
        )

    def start(self, query: AggregateQuery, parallel: bool = False) -> ResultFrame:
        """Plans a new incremental query and returns the result of partition 0.

        Raises:
            NotPartitionedError: The table has no partition metadata.
            UnsupportedAggregateError: A projection item cannot be merged.
            InvalidStatementError: Parallel mode on a channel without concurrent scans.
            ScanFailure: Partition 0 failed; the plan stays committed and the
                next ``advance()`` retries it.
        """
        if self.has_pending_scans():
            warnings.warn(
                f"Query {self._state.query_id} replaced while partition scans were still running.",
                ResourceLeakWarning,
                stacklevel=2,
            )
        self._state = TaskState()

        query_id = uuid.uuid4().hex
        with query_context(query_id):
            if parallel and DatasourceCapability.SUPPORTS_CONCURRENT_SCANS not in self.channel.capabilities():
                raise InvalidStatementError(
                    f"Datasource '{self.channel.datasource_id}' does not support parallel partition scans."
                )

            plan, descriptors = self.planner.generate(
                query.schema_name or self.default_schema,
                query.table_name,
                query.projection,
                where_sql=query.where_sql,
            )
            self._state = TaskState(
                query_id=query_id,
                plan=plan,
                header=[descriptor.label for descriptor in descriptors],
                descriptors=descriptors,
                mode=ExecutionMode.PARALLEL if parallel else ExecutionMode.SEQUENTIAL,
                approximate=query.approximate,
                status=CoordinatorState.PLANNED,
            )
            logger.info(
                f"Started {self._state.mode.value.lower()} incremental query over "
                f"{plan.table.full_name} with {len(plan)} partitions"
            )
            return self._step()

    def advance(self) -> ResultFrame:
        """Scans the next partition and returns the refined aggregates.

        Once exhausted, returns an empty result with the same header.
        """
        state = self._state
        if state.status == CoordinatorState.IDLE:
            raise InvalidStateError("No incremental query is active; start one first.")

        with query_context(state.query_id):
            if state.status == CoordinatorState.EXHAUSTED:
                return self._frame([])
            return self._step()

    def _step(self) -> ResultFrame:
        state = self._state
        index = state.cursor
        result = self._next_partition(index)

        state.accumulated_rows.extend(result.rows)
        state.cursor += 1

        if state.mode == ExecutionMode.PARALLEL and not state.dispatched:
            state.pending = self.pool.submit_remaining(self.channel, state.plan, state.cursor)
            state.dispatched = True

        if state.cursor >= state.partition_count:
            state.status = CoordinatorState.EXHAUSTED
        else:
            state.status = CoordinatorState.ADVANCING

        logger.info(
            f"Merged partition {index + 1}/{state.partition_count} "
            f"({result.execution_time_ms:.1f} ms)"
        )
        values = self.merger.merge(
            state.accumulated_rows, state.descriptors, state.approximate_factor()
        )
        return self._frame([values])

    def _next_partition(self, index: int) -> PartitionScanResult:
        state = self._state
        slot = state.pending[0] if state.pending else None
        if slot is None:
            return scan_partition(self.channel, index, state.plan[index])

        if slot.partition_index != index:
            raise InvalidStateError(
                f"Pending scan for partition {slot.partition_index} does not match cursor {index}."
            )
        if slot.future is None:
            # Failed earlier in the pool; rescan on the caller's thread.
            result = scan_partition(self.channel, index, state.plan[index])
        else:
            try:
                result = slot.future.result()
            except ScanFailure:
                slot.future = None
                raise
        state.pending.popleft()
        return result

    def _frame(self, rows: List[List[Any]]) -> ResultFrame:
        state = self._state
        types = [_type_name(value) for value in rows[0]] if rows else None
        return ResultFrame.from_rows(
            state.header,
            rows,
            column_types=types,
            datasource_id=self.channel.datasource_id,
            execution_stats={
                "query_id": state.query_id,
                "mode": state.mode.value,
                "partitions_scanned": state.cursor,
                "partition_count": state.partition_count,
                "approximate_factor": state.approximate_factor(),
                "state": state.status.value,
            },
        )

    def close(self, wait: bool = False) -> None:
        """Releases the scan pool. Running scans are left to finish on their own."""
        if self.has_pending_scans():
            warnings.warn(
                f"Closing with partition scans of query {self._state.query_id} still running.",
                ResourceLeakWarning,
                stacklevel=2,
            )
        self.pool.shutdown(wait=wait)
        self._state = TaskState()
