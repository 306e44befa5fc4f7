from __future__ import annotations

import logging
import threading
from typing import Dict, List, Sequence

from incsql_adapter_sdk import TableRef

from .lookup import CatalogLookup, Found, NotFound
from .models import TablePartitions
from .predicates import Predicate, matches_all
from .protocol import catalog_record

logger = logging.getLogger(__name__)


class InMemoryPartitionCatalog:
    """Process-local partition catalog, one instance per session context."""

    def __init__(self):
        self._entries: Dict[str, TablePartitions] = {}
        self._lock = threading.Lock()

    def register(self, entry: TablePartitions) -> None:
        with self._lock:
            replaced = entry.key in self._entries
            self._entries[entry.key] = entry
        logger.info(
            "%s partition metadata for %s (%d partitions)",
            "Replaced" if replaced else "Registered",
            entry.table_ref.full_name,
            len(entry.partitions),
        )

    def lookup(self, schema_name: str, table_name: str) -> CatalogLookup[TablePartitions]:
        key = TableRef(schema_name=schema_name, table_name=table_name).key
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return NotFound(key=key)
        return Found(entry)

    def list_tables(self, filters: Sequence[Predicate] = ()) -> List[TablePartitions]:
        with self._lock:
            entries = list(self._entries.values())
        return [e for e in entries if matches_all(filters, catalog_record(e))]

    def drop(self, schema_name: str, table_name: str) -> bool:
        key = TableRef(schema_name=schema_name, table_name=table_name).key
        with self._lock:
            return self._entries.pop(key, None) is not None
