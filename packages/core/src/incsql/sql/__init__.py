from .statements import (
    AggregateQuery,
    IncrementalStatement,
    StatementKind,
    parse_aggregate_query,
    parse_incremental_statement,
)

__all__ = [
    "AggregateQuery",
    "IncrementalStatement",
    "StatementKind",
    "parse_aggregate_query",
    "parse_incremental_statement",
]
