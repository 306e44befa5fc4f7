"""
Public API for the incsql core package.

``IncrementalSQL`` is the statement dispatcher clients talk to: incremental
statements drive the task coordinator, anything else is handed to the SQL
channel unchanged.
"""

from __future__ import annotations

import pathlib
from typing import Optional, Union

from incsql_adapter_sdk import DatasourceAdapter, ResultFrame

from incsql.common.logger import get_logger
from incsql.context import IncrementalContext
from incsql.incremental import CoordinatorState, ExecutionMode
from incsql.schema import PartitionCatalog
from incsql.sql import StatementKind, parse_aggregate_query, parse_incremental_statement

logger = get_logger("incsql")


class IncrementalSQL:
    """
    Public entry point for incremental aggregate queries.

    Example:
        >>> with IncrementalSQL(channel=adapter, partition_config_path="partitions.yaml") as db:
        ...     first = db.execute("INCREMENTAL SELECT SUM(amount) FROM sales.orders")
        ...     second = db.execute("INCREMENTAL rows")
    """

    def __init__(
        self,
        channel: Optional[DatasourceAdapter] = None,
        catalog: Optional[PartitionCatalog] = None,
        partition_config_path: Optional[Union[str, pathlib.Path]] = None,
        max_workers: Optional[int] = None,
        default_schema: Optional[str] = None,
        ctx: Optional[IncrementalContext] = None,
    ):
        if ctx is None:
            ctx = IncrementalContext(
                channel=channel,
                catalog=catalog,
                partition_config_path=pathlib.Path(partition_config_path) if partition_config_path else None,
                max_workers=max_workers,
                default_schema=default_schema,
            )
        self._ctx = ctx

    @property
    def context(self) -> IncrementalContext:
        return self._ctx

    @property
    def state(self) -> CoordinatorState:
        return self._ctx.coordinator.status

    def execute(self, sql: str) -> ResultFrame:
        """Dispatches one client statement.

        Raises:
            IncrementalQueryError: Any planning, scan or merge failure of an
                incremental statement. Pass-through statements report failures
                in the returned frame, as the channel does.
        """
        statement = parse_incremental_statement(sql)
        if statement is None:
            logger.debug("Passing statement through to the channel.")
            return self._ctx.channel.execute(sql)

        if statement.kind == StatementKind.ADVANCE:
            return self.advance()
        return self.start(statement.select_sql, parallel=statement.parallel)

    def start(self, select_sql: str, parallel: bool = False) -> ResultFrame:
        query = parse_aggregate_query(select_sql, dialect=self._ctx.dialect)
        return self._ctx.coordinator.start(query, parallel=parallel)

    def advance(self) -> ResultFrame:
        return self._ctx.coordinator.advance()

    @property
    def mode(self) -> ExecutionMode:
        return self._ctx.coordinator.state.mode

    def close(self) -> None:
        self._ctx.close()

    def __enter__(self) -> "IncrementalSQL":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
