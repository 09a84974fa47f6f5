"""Parameter binding.

Query text is always a constant: either a SQL string with ``:name``
placeholders or a SQLAlchemy Core statement built from ``bindparam()``.
Caller values only ever travel as bind parameters, so quotes, comment
markers and control characters in them are inert data.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.sql import ClauseElement

from storefront.domain.errors import InvalidRequestError


@dataclass(frozen=True)
class BoundQuery:
    """A constant statement plus the values for its placeholders."""

    statement: ClauseElement
    params: Mapping[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        """Statement kind for logging (``select``, ``insert``, ``text``...)."""
        return getattr(self.statement, "__visit_name__", type(self.statement).__name__)


def bind(template: str | ClauseElement, params: Mapping[str, Any] | None = None) -> BoundQuery:
    """Pair ``template`` with ``params`` after checking every placeholder is covered.

    Raises InvalidRequestError, without dispatching anything, when a required
    placeholder has no value or a value names a placeholder the template
    does not declare.
    """
    statement = text(template) if isinstance(template, str) else template
    values = dict(params or {})

    declared = statement.compile().binds
    missing = sorted(
        name for name, param in declared.items() if param.required and name not in values
    )
    if missing:
        raise InvalidRequestError(f"Missing query parameters: {', '.join(missing)}")
    unknown = sorted(values.keys() - declared.keys())
    if unknown:
        raise InvalidRequestError(f"Unknown query parameters: {', '.join(unknown)}")

    return BoundQuery(statement=statement, params=values)
