"""Explicit catalog lookup results.

A lookup either finds the entry, finds nothing, or fails while reading the
catalog. Callers branch on the variant instead of interpreting ``None``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    key: str


@dataclass(frozen=True)
class LookupFailed:
    key: str
    error: Exception


CatalogLookup = Union[Found[T], NotFound, LookupFailed]
