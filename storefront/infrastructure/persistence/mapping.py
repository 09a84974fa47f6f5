"""Typed, ordinal, null-aware row decoding.

A RowMapper declares the columns an entity needs and a typed reader for
each.  ``plan(keys)`` resolves every column to its ordinal once per cursor
shape; the returned decoder then reads rows by position.  Values are checked
against the declared type rather than coerced, so schema drift surfaces as
MappingError instead of a silently wrong entity.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from storefront.domain.errors import MappingError

T = TypeVar("T")

Reader = Callable[[str, Any], Any]


def read_int(column: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MappingError(f"column {column!r}: expected integer, got {type(value).__name__}")
    return value


def read_text(column: str, value: Any) -> str:
    if not isinstance(value, str):
        raise MappingError(f"column {column!r}: expected text, got {type(value).__name__}")
    return value


def read_timestamp(column: str, value: Any) -> datetime:
    if not isinstance(value, datetime):
        raise MappingError(f"column {column!r}: expected timestamp, got {type(value).__name__}")
    return value


def read_bool(column: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise MappingError(f"column {column!r}: expected boolean, got {type(value).__name__}")
    return value


def read_decimal(column: str, value: Any) -> Decimal:
    if not isinstance(value, Decimal):
        raise MappingError(f"column {column!r}: expected decimal, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ColumnSpec:
    """One result column: its name in the cursor, the entity field it fills,
    its reader, and whether NULL is allowed.

    ``default`` replaces NULL in a nullable column (None unless given).
    """

    column: str
    field: str
    reader: Reader
    nullable: bool = False
    default: Any = None


class RowMapper(Generic[T]):
    def __init__(self, factory: Callable[..., T], columns: Sequence[ColumnSpec]) -> None:
        self._factory = factory
        self._columns = tuple(columns)

    @property
    def columns(self) -> tuple[ColumnSpec, ...]:
        return self._columns

    def plan(self, keys: Sequence[str]) -> Callable[[Sequence[Any]], T]:
        """Resolve column ordinals for a cursor shape and return a row decoder."""
        positions = _index_keys(keys)
        ordinals: list[int] = []
        for spec in self._columns:
            ordinal = positions.get(spec.column)
            if ordinal is None:
                ordinal = positions.get(spec.column.lower())
            if ordinal is None:
                raise MappingError(f"column {spec.column!r} missing from result")
            ordinals.append(ordinal)
        resolved = tuple(zip(ordinals, self._columns))

        def decode(row: Sequence[Any]) -> T:
            values: dict[str, Any] = {}
            for ordinal, spec in resolved:
                value = row[ordinal]
                if value is None:
                    if not spec.nullable:
                        raise MappingError(f"column {spec.column!r} is unexpectedly NULL")
                    values[spec.field] = spec.default
                else:
                    values[spec.field] = spec.reader(spec.column, value)
            return self._factory(**values)

        return decode

    def decode(self, keys: Sequence[str], row: Sequence[Any]) -> T:
        """One-off decode; prefer ``plan`` when reading many rows."""
        return self.plan(keys)(row)


def _index_keys(keys: Sequence[str]) -> Mapping[str, int]:
    positions: dict[str, int] = {}
    for ordinal, key in enumerate(keys):
        positions.setdefault(key, ordinal)
        positions.setdefault(key.lower(), ordinal)
    return positions
