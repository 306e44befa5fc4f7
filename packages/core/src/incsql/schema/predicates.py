"""Parameterized predicates for catalog filtering.

Filters are (key, operator, value) tuples. Keys are checked against a whitelist
and values are always bound as parameters, never spliced into the SQL text.
"""
from __future__ import annotations

import fnmatch
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

_OPERATORS = {
    "=": lambda left, right: left == right,
    "!=": lambda left, right: left != right,
    "<": lambda left, right: left < right,
    "<=": lambda left, right: left <= right,
    ">": lambda left, right: left > right,
    ">=": lambda left, right: left >= right,
    "LIKE": lambda left, right: fnmatch.fnmatchcase(
        str(left), str(right).replace("%", "*").replace("_", "?")
    ),
    "IN": lambda left, right: left in right,
}


class Predicate(BaseModel):
    key: str
    operator: str = "="
    value: Any

    model_config = ConfigDict(frozen=True)

    @field_validator("operator")
    @classmethod
    def _known_operator(cls, value: str) -> str:
        op = value.strip().upper()
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported predicate operator: {value}")
        return op

    def matches(self, record: Dict[str, Any]) -> bool:
        if self.key not in record:
            return False
        return _OPERATORS[self.operator](record[self.key], self.value)


def build_where_clause(
    predicates: Sequence[Predicate],
    allowed_keys: Iterable[str],
) -> Tuple[str, List[Any]]:
    """Renders predicates as a ``WHERE`` fragment with ``?`` placeholders.

    Returns:
        Tuple[str, List[Any]]: The fragment (empty when there are no predicates)
        and the positional parameters in placeholder order.
    """
    allowed = set(allowed_keys)
    clauses: List[str] = []
    params: List[Any] = []
    for predicate in predicates:
        if predicate.key not in allowed:
            raise ValueError(f"Unknown filter key: {predicate.key}")
        if predicate.operator == "IN":
            values = list(predicate.value)
            if not values:
                clauses.append("1 = 0")
                continue
            placeholders = ", ".join("?" for _ in values)
            clauses.append(f"{predicate.key} IN ({placeholders})")
            params.extend(values)
        else:
            clauses.append(f"{predicate.key} {predicate.operator} ?")
            params.append(predicate.value)
    if not clauses:
        return "", []
    return "WHERE " + " AND ".join(clauses), params


def matches_all(predicates: Sequence[Predicate], record: Dict[str, Any]) -> bool:
    return all(predicate.matches(record) for predicate in predicates)
