from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence

from .lookup import CatalogLookup
from .models import TablePartitions
from .predicates import Predicate

FILTER_KEYS = ("schema_name", "table_name", "partition_column", "addressing", "partition_count")


def catalog_record(entry: TablePartitions) -> Dict[str, Any]:
    """Flat view of an entry, keyed by the filterable columns."""
    return {
        "schema_name": entry.schema_name,
        "table_name": entry.table_name,
        "partition_column": entry.partition_column,
        "addressing": entry.addressing.value if entry.addressing else None,
        "partition_count": len(entry.partitions),
    }


class PartitionCatalog(Protocol):
    """Unified interface for partition catalog backends."""

    def register(self, entry: TablePartitions) -> None:
        ...

    def lookup(self, schema_name: str, table_name: str) -> CatalogLookup[TablePartitions]:
        ...

    def list_tables(self, filters: Sequence[Predicate] = ()) -> List[TablePartitions]:
        ...

    def drop(self, schema_name: str, table_name: str) -> bool:
        ...
