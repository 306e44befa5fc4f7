"""Parsing of the incremental statement forms.

``INCREMENTAL [PARALLEL] <select>`` starts a query, ``INCREMENTAL [PARALLEL] rows``
pulls the next partition. The select itself is normalized with sqlglot into a
single-table aggregate projection.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

import sqlglot
from sqlglot import expressions as exp
from sqlglot.errors import ParseError
from pydantic import BaseModel, ConfigDict, Field

from incsql.common.errors import InvalidStatementError, UnsupportedAggregateError
from incsql.incremental.models import ProjectionItem

_INCREMENTAL_RE = re.compile(
    r"^\s*INCREMENTAL\s+(?:(?P<parallel>PARALLEL)\s+)?(?P<body>.*?)\s*;?\s*$",
    re.IGNORECASE | re.DOTALL,
)
_ADVANCE_RE = re.compile(r"^rows$", re.IGNORECASE)
_APPROXIMATE_KEYWORD_RE = re.compile(r"^(\s*SELECT)\s+APPROXIMATE\b", re.IGNORECASE)
_APPROXIMATE_HINT_RE = re.compile(r"/\*\+[^*]*\bAPPROXIMATE\b[^*]*\*/", re.IGNORECASE)


class StatementKind(str, Enum):
    START = "start"
    ADVANCE = "advance"


class IncrementalStatement(BaseModel):
    kind: StatementKind
    parallel: bool = False
    select_sql: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class AggregateQuery(BaseModel):
    """A normalized single-table aggregate query."""

    schema_name: Optional[str] = None
    table_name: str
    projection: List[ProjectionItem] = Field(default_factory=list)
    where_sql: Optional[str] = None
    approximate: bool = False

    model_config = ConfigDict(frozen=True)


def parse_incremental_statement(sql: str) -> Optional[IncrementalStatement]:
    """Recognizes the incremental statement forms; returns None for anything else."""
    match = _INCREMENTAL_RE.match(sql or "")
    if not match:
        return None
    body = match.group("body")
    parallel = match.group("parallel") is not None
    if _ADVANCE_RE.match(body):
        return IncrementalStatement(kind=StatementKind.ADVANCE, parallel=parallel)
    if not body:
        raise InvalidStatementError("INCREMENTAL requires a SELECT statement or 'rows'.")
    return IncrementalStatement(kind=StatementKind.START, parallel=parallel, select_sql=body)


def _strip_approximate(sql: str) -> tuple[str, bool]:
    stripped, keyword_hits = _APPROXIMATE_KEYWORD_RE.subn(r"\1", sql, count=1)
    stripped, hint_hits = _APPROXIMATE_HINT_RE.subn(" ", stripped)
    return stripped, bool(keyword_hits or hint_hits)


def _function_name(node: exp.Expression) -> str:
    if isinstance(node, exp.Anonymous):
        return str(node.name).upper()
    if isinstance(node, exp.Func):
        return node.sql_name()
    return node.sql()


def _projection_item(node: exp.Expression, dialect: Optional[str]) -> ProjectionItem:
    alias = None
    if isinstance(node, exp.Alias):
        alias = node.alias
        node = node.this

    name = _function_name(node)
    if not isinstance(node, exp.Func):
        raise UnsupportedAggregateError(name)

    if isinstance(node, exp.Anonymous):
        argument = node.expressions[0] if node.expressions else None
    else:
        argument = node.this
    if isinstance(argument, exp.Distinct):
        raise UnsupportedAggregateError(f"{name}(DISTINCT)")
    if isinstance(argument, exp.Star):
        column = "*"
    elif isinstance(argument, exp.Column):
        column = argument.name
    else:
        raise UnsupportedAggregateError(node.sql(dialect=dialect))

    return ProjectionItem(function_name=name, column=column, alias=alias)


def parse_aggregate_query(select_sql: str, dialect: Optional[str] = None) -> AggregateQuery:
    """Normalizes a single-table aggregate SELECT.

    Raises:
        InvalidStatementError: When the statement is not a plain single-table
            SELECT without joins, grouping or subqueries.
        UnsupportedAggregateError: When a projection item cannot be merged
            across partitions.
    """
    sql, approximate = _strip_approximate(select_sql)
    try:
        statement = sqlglot.parse_one(sql, read=dialect)
    except ParseError as exc:
        raise InvalidStatementError(f"Failed to parse incremental query: {exc}") from exc

    if not isinstance(statement, exp.Select):
        raise InvalidStatementError("Incremental queries must be SELECT statements.")
    if statement.args.get("joins"):
        raise InvalidStatementError("Incremental queries cannot join tables.")
    if statement.args.get("group"):
        raise InvalidStatementError("Incremental queries do not support GROUP BY.")
    if statement.find(exp.Subquery):
        raise InvalidStatementError("Incremental queries cannot contain subqueries.")

    tables = list(statement.find_all(exp.Table))
    if len(tables) != 1:
        raise InvalidStatementError("Incremental queries must read exactly one table.")
    table = tables[0]

    projection = [_projection_item(node, dialect) for node in statement.expressions]
    if not projection:
        raise InvalidStatementError("Incremental queries need at least one aggregate.")

    where = statement.args.get("where")
    return AggregateQuery(
        schema_name=table.db or None,
        table_name=table.name,
        projection=projection,
        where_sql=where.this.sql(dialect=dialect) if where is not None else None,
        approximate=approximate,
    )
