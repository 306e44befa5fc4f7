"""Partition plan generation.

Rewrites the client's aggregate projection into its mergeable physical form and
renders one scan statement per partition, addressed the way the backing
dialect (or the catalog entry) requires.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from sqlglot import expressions as exp

from incsql.common.errors import CatalogError, NotPartitionedError, UnsupportedAggregateError
from incsql.common.logger import get_logger
from incsql.schema import (
    Found,
    LookupFailed,
    PartitionAddressing,
    PartitionCatalog,
    TablePartitions,
    TableRef,
)

from .models import AggregateDescriptor, AggregateKind, PartitionPlan, ProjectionItem

logger = get_logger(__name__)

_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")

_DEFAULT_ADDRESSING: Dict[str, PartitionAddressing] = {
    "bigquery": PartitionAddressing.RANGE_PREDICATE,
    "postgres": PartitionAddressing.PARTITION_TABLE,
    "sqlite": PartitionAddressing.PARTITION_TABLE,
    "duckdb": PartitionAddressing.PARTITION_TABLE,
}

_AGG_EXPRESSIONS = {
    AggregateKind.COUNT: exp.Count,
    AggregateKind.SUM: exp.Sum,
    AggregateKind.MIN: exp.Min,
    AggregateKind.MAX: exp.Max,
}


def default_addressing(dialect: str) -> PartitionAddressing:
    return _DEFAULT_ADDRESSING.get(dialect, PartitionAddressing.PARTITION_CLAUSE)


def _bound_literal(value: str) -> exp.Literal:
    if _NUMERIC_RE.match(value):
        return exp.Literal.number(value)
    return exp.Literal.string(value)


class PartitionPlanGenerator:
    """Builds the ordered per-partition scan statements for an aggregate query."""

    def __init__(self, catalog: PartitionCatalog, dialect: str):
        self.catalog = catalog
        self.dialect = dialect

    def describe(self, projection: Sequence[ProjectionItem]) -> List[AggregateDescriptor]:
        descriptors = []
        for item in projection:
            try:
                kind = AggregateKind(item.function_name.upper())
            except ValueError:
                raise UnsupportedAggregateError(item.function_name)
            if item.column == "*" and kind != AggregateKind.COUNT:
                raise UnsupportedAggregateError(f"{kind.value}(*)")
            descriptors.append(
                AggregateDescriptor(
                    kind=kind,
                    source_column=item.column,
                    label=item.alias or kind.value,
                )
            )
        return descriptors

    def resolve(self, schema_name: str, table_name: str) -> TablePartitions:
        table = TableRef(schema_name=schema_name, table_name=table_name)
        result = self.catalog.lookup(schema_name, table_name)
        if isinstance(result, LookupFailed):
            raise CatalogError(
                f"Failed to read partition metadata for {table.full_name}: {result.error}"
            )
        if not isinstance(result, Found) or not result.value.partitions:
            raise NotPartitionedError(table.full_name)
        return result.value

    def generate(
        self,
        schema_name: str,
        table_name: str,
        projection: Sequence[ProjectionItem],
        where_sql: Optional[str] = None,
    ) -> Tuple[PartitionPlan, List[AggregateDescriptor]]:
        entry = self.resolve(schema_name, table_name)
        descriptors = self.describe(projection)

        addressing = entry.addressing or default_addressing(self.dialect)
        if addressing == PartitionAddressing.RANGE_PREDICATE and not entry.partition_column:
            raise NotPartitionedError(
                entry.table_ref.full_name, "range partitions require a partition column"
            )

        projection_sql = ", ".join(
            node.sql(dialect=self.dialect) for node in self._physical_projection(descriptors)
        )
        where = exp.condition(where_sql, dialect=self.dialect) if where_sql else None

        statements = tuple(
            self._statement(entry, addressing, index, projection_sql, where)
            for index in range(len(entry.partitions))
        )
        plan = PartitionPlan(
            table=entry.table_ref,
            dialect=self.dialect,
            addressing=addressing,
            statements=statements,
        )
        logger.info(
            f"Planned {len(plan)} partition scans for {entry.table_ref.full_name} "
            f"({addressing.value}, dialect={self.dialect})"
        )
        return plan, descriptors

    def _physical_projection(self, descriptors: Sequence[AggregateDescriptor]) -> List[exp.Expression]:
        nodes: List[exp.Expression] = []
        for descriptor in descriptors:
            column = exp.Star() if descriptor.source_column == "*" else exp.column(descriptor.source_column)
            if descriptor.kind == AggregateKind.AVG:
                nodes.append(exp.Sum(this=column))
                nodes.append(exp.Count(this=column.copy()))
            else:
                nodes.append(_AGG_EXPRESSIONS[descriptor.kind](this=column))
        return nodes

    def _statement(
        self,
        entry: TablePartitions,
        addressing: PartitionAddressing,
        index: int,
        projection_sql: str,
        where: Optional[exp.Expression],
    ) -> str:
        partition = entry.partitions[index]
        conditions: List[exp.Expression] = []

        if addressing == PartitionAddressing.RANGE_PREDICATE:
            source = exp.table_(entry.table_name, db=entry.schema_name).sql(dialect=self.dialect)
            column = exp.column(entry.partition_column)
            conditions.append(exp.GTE(this=column, expression=_bound_literal(partition)))
            if index < len(entry.partitions) - 1:
                upper = entry.partitions[index + 1]
                conditions.append(exp.LT(this=column.copy(), expression=_bound_literal(upper)))
        elif addressing == PartitionAddressing.PARTITION_TABLE:
            source = exp.table_(partition, db=entry.schema_name).sql(dialect=self.dialect)
        else:
            table_sql = exp.table_(entry.table_name).sql(dialect=self.dialect)
            partition_sql = exp.to_identifier(partition).sql(dialect=self.dialect)
            source = f"{table_sql} PARTITION({partition_sql})"

        if where is not None:
            conditions.append(where.copy())

        sql = f"SELECT {projection_sql} FROM {source}"
        if conditions:
            sql += f" WHERE {exp.and_(*conditions).sql(dialect=self.dialect)}"
        return sql
