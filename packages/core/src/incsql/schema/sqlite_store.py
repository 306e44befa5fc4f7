from __future__ import annotations

import json
import logging
from pathlib import Path
import sqlite3
import threading
from typing import List, Sequence

from incsql_adapter_sdk import TableRef

from .lookup import CatalogLookup, Found, LookupFailed, NotFound
from .models import TablePartitions
from .predicates import Predicate, build_where_clause
from .protocol import FILTER_KEYS

logger = logging.getLogger(__name__)


class SqlitePartitionCatalog:
    """SQLite-backed partition catalog."""

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()
        self._connection = self._connect()
        self._initialize_schema()

    def _connect(self) -> sqlite3.Connection:
        if str(self._path) != ":memory:":
            self._path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(str(self._path), check_same_thread=False)
        connection.execute("PRAGMA journal_mode=WAL;")
        return connection

    def _initialize_schema(self) -> None:
        cursor = self._connection.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS table_partitions (
                table_key TEXT PRIMARY KEY,
                schema_name TEXT NOT NULL,
                table_name TEXT NOT NULL,
                partition_column TEXT,
                addressing TEXT,
                partition_count INTEGER NOT NULL,
                partitions_json TEXT NOT NULL
            );
            """
        )
        self._connection.commit()

    def register(self, entry: TablePartitions) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT OR REPLACE INTO table_partitions (
                    table_key, schema_name, table_name, partition_column,
                    addressing, partition_count, partitions_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.key,
                    entry.schema_name,
                    entry.table_name,
                    entry.partition_column,
                    entry.addressing.value if entry.addressing else None,
                    len(entry.partitions),
                    json.dumps(entry.partitions),
                ),
            )
            self._connection.commit()
        logger.info(
            "Stored partition metadata for %s (%d partitions)",
            entry.table_ref.full_name,
            len(entry.partitions),
        )

    def lookup(self, schema_name: str, table_name: str) -> CatalogLookup[TablePartitions]:
        key = TableRef(schema_name=schema_name, table_name=table_name).key
        try:
            with self._lock:
                row = self._connection.execute(
                    f"SELECT {', '.join(FILTER_KEYS)}, partitions_json "
                    "FROM table_partitions WHERE table_key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.error("Partition catalog lookup failed for %s: %s", key, exc)
            return LookupFailed(key=key, error=exc)
        if row is None:
            return NotFound(key=key)
        return Found(self._row_to_entry(row))

    def list_tables(self, filters: Sequence[Predicate] = ()) -> List[TablePartitions]:
        where, params = build_where_clause(filters, FILTER_KEYS)
        with self._lock:
            rows = self._connection.execute(
                f"SELECT {', '.join(FILTER_KEYS)}, partitions_json "
                f"FROM table_partitions {where} ORDER BY table_key",
                params,
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def drop(self, schema_name: str, table_name: str) -> bool:
        key = TableRef(schema_name=schema_name, table_name=table_name).key
        with self._lock:
            cursor = self._connection.execute(
                "DELETE FROM table_partitions WHERE table_key = ?", (key,)
            )
            self._connection.commit()
        return cursor.rowcount > 0

    def close(self) -> None:
        self._connection.close()

    @staticmethod
    def _row_to_entry(row) -> TablePartitions:
        schema_name, table_name, partition_column, addressing, _, partitions_json = row
        return TablePartitions(
            schema_name=schema_name,
            table_name=table_name,
            partition_column=partition_column,
            addressing=addressing,
            partitions=json.loads(partitions_json),
        )
