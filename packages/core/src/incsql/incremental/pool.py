"""
Parallel Scan Pool for running partition scans ahead of the client.

Each incremental context owns one pool. Workers are started lazily on the first
parallel dispatch and scans keep their submission order in the returned queue,
whatever order they finish in.
"""
from __future__ import annotations

import contextvars
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Deque, Optional

from incsql_adapter_sdk import DatasourceAdapter
from incsql.common.logger import get_logger
from incsql.common.settings import settings

from .models import PartitionPlan, PendingScan
from .scan import scan_partition

logger = get_logger("scan_pool")


class ParallelScanPool:
    """Fixed-size worker pool that executes partition scans concurrently."""

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or settings.parallel_scan_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def started(self) -> bool:
        return self._executor is not None

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            logger.info(f"Initializing parallel scan pool with {self.max_workers} workers.")
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="incsql-scan",
            )
        return self._executor

    def submit_remaining(
        self, channel: DatasourceAdapter, plan: PartitionPlan, start: int
    ) -> Deque[PendingScan]:
        """Dispatches partitions ``start..n-1`` and returns their slots in partition order."""
        executor = self._get_executor()
        pending: Deque[PendingScan] = deque()
        for index in range(start, len(plan)):
            # Each worker runs in a copy of the caller's context so logs keep the query id.
            ctx = contextvars.copy_context()
            future = executor.submit(ctx.run, scan_partition, channel, index, plan[index])
            pending.append(PendingScan(partition_index=index, future=future))
        logger.debug(f"Dispatched {len(pending)} partition scans starting at {start}.")
        return pending

    def shutdown(self, wait: bool = True) -> None:
        """Stops the workers. Scans already running are not cancelled."""
        if self._executor is not None:
            logger.info("Shutting down parallel scan pool...")
            self._executor.shutdown(wait=wait)
            self._executor = None
