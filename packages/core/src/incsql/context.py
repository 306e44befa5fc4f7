from __future__ import annotations

import pathlib
from typing import Optional

from incsql_adapter_sdk import DatasourceAdapter
from incsql_sqlalchemy_adapter import BaseSQLAlchemyAdapter

from incsql.common.logger import get_logger
from incsql.common.settings import settings
from incsql.configs import ConfigManager
from incsql.incremental import ParallelScanPool, TaskCoordinator
from incsql.schema import PartitionCatalog, build_partition_catalog

logger = get_logger("incremental_context")


class IncrementalContext:
    """
    Per-connection context owning the SQL channel, the partition catalog,
    the parallel scan pool and the task coordinator.

    One context serves one client session; close it (or use it as a context
    manager) when the session ends.
    """

    def __init__(
        self,
        channel: Optional[DatasourceAdapter] = None,
        catalog: Optional[PartitionCatalog] = None,
        partition_config_path: Optional[pathlib.Path] = None,
        max_workers: Optional[int] = None,
        default_schema: Optional[str] = None,
    ):
        """
        Args:
            channel: SQL execution channel. Built from ``settings.datasource_url`` if omitted.
            catalog: Partition catalog. Built from the settings backend if omitted.
            partition_config_path: YAML file registered into the catalog. When omitted,
                the configured default is loaded only if it exists.
            max_workers: Parallel scan worker count (default from settings).
            default_schema: Schema assumed for unqualified tables.
        """
        if channel is None:
            if not settings.datasource_url:
                raise ValueError("INCSQL_DATASOURCE_URL must be set when no channel is given.")
            channel = BaseSQLAlchemyAdapter(connection_string=settings.datasource_url)
        self.channel = channel

        if catalog is None:
            catalog = build_partition_catalog(
                settings.catalog_backend, path=pathlib.Path(settings.catalog_path)
            )
        self.catalog = catalog

        self.config_manager = ConfigManager()
        if partition_config_path is not None:
            count = self.config_manager.populate_catalog(self.catalog, pathlib.Path(partition_config_path))
            logger.info(f"Registered {count} partitioned tables from {partition_config_path}")
        else:
            default_path = pathlib.Path(settings.partition_config_path)
            if default_path.exists():
                count = self.config_manager.populate_catalog(self.catalog, default_path)
                logger.info(f"Registered {count} partitioned tables from {default_path}")

        self.pool = ParallelScanPool(max_workers=max_workers)
        self.coordinator = TaskCoordinator(
            channel=self.channel,
            catalog=self.catalog,
            pool=self.pool,
            default_schema=default_schema,
        )
        self._closed = False

    @property
    def dialect(self) -> str:
        return self.channel.get_dialect()

    def close(self) -> None:
        """Releases the scan pool, then the channel.

        Scans still running are not cancelled. Closing blocks until they finish
        so none of them loses the channel mid-statement.
        """
        if self._closed:
            return
        self.coordinator.close(wait=True)
        self.channel.close()
        self._closed = True

    def __enter__(self) -> "IncrementalContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
