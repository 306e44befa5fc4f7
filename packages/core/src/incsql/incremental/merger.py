"""Merging of per-partition partial aggregates.

Each merge recomputes every aggregate from the complete accumulated row set.
The accumulated rows hold the physical columns of the scan statements, one row
per scanned partition, so AVG spans two consecutive columns (sum, count).
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from incsql.common.errors import UnsupportedTypeError
from incsql.common.logger import get_logger

from .cursor import ResumableRowCursor
from .models import AggregateDescriptor, AggregateKind

logger = get_logger(__name__)


class ValueFamily(str, Enum):
    INTEGER = "INTEGER"
    DECIMAL = "DECIMAL"
    FLOAT = "FLOAT"
    STRING = "STRING"


_NUMERIC_RANK = {ValueFamily.INTEGER: 0, ValueFamily.DECIMAL: 1, ValueFamily.FLOAT: 2}


def value_family(value: Any, column: Optional[str] = None) -> ValueFamily:
    """Classifies a single partial aggregate value."""
    if isinstance(value, bool):
        raise UnsupportedTypeError(type(value).__name__, column)
    if isinstance(value, int):
        return ValueFamily.INTEGER
    if isinstance(value, Decimal):
        return ValueFamily.DECIMAL
    if isinstance(value, float):
        return ValueFamily.FLOAT
    if isinstance(value, str):
        return ValueFamily.STRING
    raise UnsupportedTypeError(type(value).__name__, column)


def widen(current: Optional[ValueFamily], family: ValueFamily, column: Optional[str] = None) -> ValueFamily:
    """Combines two families of one column: INTEGER < DECIMAL < FLOAT, strings only with strings."""
    if current is None or current == family:
        return family
    if ValueFamily.STRING in (current, family):
        raise UnsupportedTypeError(f"{current.value.lower()} mixed with {family.value.lower()}", column)
    return max(current, family, key=_NUMERIC_RANK.__getitem__)


def _coerce(value: Any, family: ValueFamily) -> Any:
    if family == ValueFamily.FLOAT:
        return float(value)
    if family == ValueFamily.DECIMAL and not isinstance(value, Decimal):
        return Decimal(value)
    return value


def _scale_factor(total: Any, factor: float) -> Any:
    if isinstance(total, Decimal):
        return Decimal(str(factor))
    return factor


def compare_strings(left: str, right: str) -> int:
    """Character-wise comparison used for string MIN/MAX.

    Returns the code point difference at the first mismatch. When one string is
    a prefix of the other the result is the length difference, not -1/+1.
    """
    for a, b in zip(left, right):
        if a != b:
            return ord(a) - ord(b)
    return len(left) - len(right)


class PartialAggregateMerger:
    """Derives current best-estimate aggregates from accumulated partial rows."""

    def merge(
        self,
        rows: Sequence[Sequence[Any]],
        descriptors: Sequence[AggregateDescriptor],
        approximate_factor: float = 1,
    ) -> List[Any]:
        cursor = ResumableRowCursor(rows)
        values: List[Any] = []
        column = 0
        for descriptor in descriptors:
            values.append(self._merge_one(cursor, descriptor, column, approximate_factor))
            column += descriptor.physical_width
        logger.debug(
            f"Merged {len(rows)} partial rows into {values} (factor={approximate_factor})"
        )
        return values

    def _merge_one(
        self,
        cursor: ResumableRowCursor,
        descriptor: AggregateDescriptor,
        column: int,
        factor: float,
    ) -> Any:
        label = descriptor.label
        if descriptor.kind == AggregateKind.COUNT:
            _, total = self._numeric_total(cursor, column, label)
            return round((total or 0) * _scale_factor(total, factor))

        if descriptor.kind == AggregateKind.SUM:
            family, total = self._numeric_total(cursor, column, label)
            if total is None:
                return None
            scaled = total * _scale_factor(total, factor)
            if family == ValueFamily.INTEGER:
                return round(scaled)
            return scaled

        if descriptor.kind == AggregateKind.AVG:
            _, total_sum = self._numeric_total(cursor, column, label)
            _, total_count = self._numeric_total(cursor, column + 1, label)
            if total_sum is None or not total_count:
                return None
            if isinstance(total_count, Decimal) and not isinstance(total_sum, Decimal):
                total_count = int(total_count)
            scale = _scale_factor(total_sum, factor)
            # identical scaling of numerator and denominator
            return (total_sum * scale) / (total_count * scale)

        if descriptor.kind == AggregateKind.MIN:
            return self._extreme(cursor, column, label, keep_smaller=True)

        if descriptor.kind == AggregateKind.MAX:
            return self._extreme(cursor, column, label, keep_smaller=False)

        raise UnsupportedTypeError(descriptor.kind.value, label)

    def _column(
        self, cursor: ResumableRowCursor, column: int, label: str
    ) -> Tuple[Optional[ValueFamily], List[Any]]:
        """Non-null values of one column, converted to the widest family present."""
        family: Optional[ValueFamily] = None
        values: List[Any] = []
        cursor.rewind()
        while cursor.next():
            value = cursor.get_value(column)
            if value is None:
                continue
            family = widen(family, value_family(value, label), label)
            values.append(value)
        if family is None:
            return None, []
        return family, [_coerce(value, family) for value in values]

    def _numeric_total(
        self, cursor: ResumableRowCursor, column: int, label: str
    ) -> Tuple[Optional[ValueFamily], Any]:
        family, values = self._column(cursor, column, label)
        if family == ValueFamily.STRING:
            raise UnsupportedTypeError("str", label)
        if not values:
            return family, None
        total = values[0]
        for value in values[1:]:
            total = total + value
        return family, total

    def _extreme(
        self, cursor: ResumableRowCursor, column: int, label: str, keep_smaller: bool
    ) -> Any:
        family, values = self._column(cursor, column, label)
        best: Any = None
        for value in values:
            if best is None:
                best = value
                continue
            if family == ValueFamily.STRING:
                order = compare_strings(best, value)
            else:
                order = (best > value) - (best < value)
            if (keep_smaller and order > 0) or (not keep_smaller and order < 0):
                best = value
        return best
