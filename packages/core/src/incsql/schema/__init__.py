"""Partition catalog models and stores."""

from incsql_adapter_sdk import TableRef

from .models import PartitionAddressing, TablePartitions
from .lookup import CatalogLookup, Found, NotFound, LookupFailed
from .predicates import Predicate, build_where_clause
from .protocol import PartitionCatalog
from .in_memory_store import InMemoryPartitionCatalog
from .sqlite_store import SqlitePartitionCatalog
from .store import build_partition_catalog

__all__ = [
    "TableRef",
    "PartitionAddressing",
    "TablePartitions",
    "CatalogLookup",
    "Found",
    "NotFound",
    "LookupFailed",
    "Predicate",
    "build_where_clause",
    "PartitionCatalog",
    "InMemoryPartitionCatalog",
    "SqlitePartitionCatalog",
    "build_partition_catalog",
]
