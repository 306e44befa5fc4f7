"""Result envelope exchanged between channels and the incremental engine.

Channels never raise for a failed statement; they return a frame with
``success=False`` and a populated ``error``. Successful frames hold positional
rows in the order of ``columns``.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

# Codes reporting an unreachable or unresponsive datasource rather than a bad statement.
CONNECTION_ERROR_CODES = frozenset({"DB_CONNECTION_ERROR", "DB_TIMEOUT"})


class ResultColumn(BaseModel):
    name: str
    type: str = "unknown"


class ResultError(BaseModel):
    """Failure details carried inside a frame instead of an exception."""

    error_code: str
    safe_message: str
    severity: str = "ERROR"
    retryable: bool = False
    stage: Optional[str] = Field(default=None, description="Step that failed, e.g. 'execute'.")
    datasource_id: Optional[str] = None

    @property
    def is_connection_error(self) -> bool:
        return self.error_code in CONNECTION_ERROR_CODES


class ResultFrame(BaseModel):
    success: bool = True
    columns: List[ResultColumn] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)
    row_count: int = 0
    datasource_id: Optional[str] = None
    execution_stats: Dict[str, Any] = Field(
        default_factory=dict, description="Timing and progress counters attached by the producer."
    )
    error: Optional[ResultError] = None

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_rows(
        cls,
        columns: Sequence[str],
        rows: Iterable[Sequence[Any]],
        *,
        column_types: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> "ResultFrame":
        """Builds a successful frame; tuples from DB drivers are copied to lists."""
        if column_types is None:
            column_types = ["unknown"] * len(columns)
        materialized = [list(row) for row in rows]
        return cls(
            columns=[ResultColumn(name=n, type=t) for n, t in zip(columns, column_types)],
            rows=materialized,
            row_count=len(materialized),
            **kwargs,
        )

    @classmethod
    def failure(cls, error: ResultError, **kwargs: Any) -> "ResultFrame":
        return cls(success=False, error=error, **kwargs)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def to_row_dicts(self) -> List[Dict[str, Any]]:
        names = self.column_names
        if not names:
            return []
        return [dict(zip(names, row)) for row in self.rows]
