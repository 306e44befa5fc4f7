from __future__ import annotations

from pathlib import Path
from typing import Optional

from .in_memory_store import InMemoryPartitionCatalog
from .protocol import PartitionCatalog
from .sqlite_store import SqlitePartitionCatalog


def build_partition_catalog(backend: str, path: Optional[Path] = None) -> PartitionCatalog:
    backend_key = (backend or "memory").lower()
    if backend_key == "memory":
        return InMemoryPartitionCatalog()
    if backend_key == "sqlite":
        if path is None:
            raise ValueError("Sqlite partition catalog requires a path.")
        return SqlitePartitionCatalog(path=path)
    raise ValueError(f"Unsupported partition catalog backend: {backend}")
