from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from incsql_adapter_sdk import TableRef


class PartitionAddressing(str, Enum):
    """How a single partition is addressed in a scan statement."""

    RANGE_PREDICATE = "range_predicate"
    PARTITION_TABLE = "partition_table"
    PARTITION_CLAUSE = "partition_clause"


class TablePartitions(BaseModel):
    """Catalog entry describing how a table is split into partitions.

    For range-predicate addressing the partition names are the lower bounds of
    each range, in ascending order, and ``partition_column`` is required.
    """

    schema_name: str
    table_name: str
    partitions: List[str] = Field(default_factory=list)
    partition_column: Optional[str] = None
    addressing: Optional[PartitionAddressing] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("partitions")
    @classmethod
    def _unique_partitions(cls, value: List[str]) -> List[str]:
        if len(set(value)) != len(value):
            raise ValueError("partition names must be unique")
        return value

    @property
    def table_ref(self) -> TableRef:
        return TableRef(schema_name=self.schema_name, table_name=self.table_name)

    @property
    def key(self) -> str:
        return self.table_ref.key
