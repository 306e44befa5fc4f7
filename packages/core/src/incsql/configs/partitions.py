from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from incsql.schema import PartitionAddressing, TablePartitions


class PartitionConfig(BaseModel):
    """One partitioned table as written in the partitions YAML file."""

    schema_name: str = Field(..., alias="schema")
    table: str
    partitions: List[str] = Field(..., min_length=1)
    column: Optional[str] = None
    addressing: Optional[PartitionAddressing] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_entry(self) -> TablePartitions:
        return TablePartitions(
            schema_name=self.schema_name,
            table_name=self.table,
            partitions=self.partitions,
            partition_column=self.column,
            addressing=self.addressing,
        )


class PartitionFileConfig(BaseModel):
    """Envelope of the partitions YAML file."""

    version: int = 1
    partitions: List[PartitionConfig] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
