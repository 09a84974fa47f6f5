"""Error taxonomy for the data-access layer.

Every failure a caller can observe is a DataAccessError subclass.  The layer
never swallows these: the controller/orchestration layer above decides
whether to log, translate or retry.  Where an error is produced from a lower
level exception, the original is kept as ``__cause__``.
"""

from __future__ import annotations

from enum import Enum


class DataAccessError(Exception):
    """Root of all data-access failures."""


class InvalidRequestError(DataAccessError, ValueError):
    """Caller-supplied data failed a precondition.

    Raised before any store round-trip.
    """


class CanceledError(DataAccessError):
    """The cancellation signal fired or its deadline passed."""


class StoreConnectionError(DataAccessError):
    """A session with the datastore could not be established or was lost.

    Messages name the host/database at most; credentials never appear.
    """


class StoreErrorKind(str, Enum):
    CONSTRAINT = "constraint"
    TIMEOUT = "timeout"
    DEADLOCK = "deadlock"
    DATA = "data"
    PROGRAMMING = "programming"
    OPERATIONAL = "operational"
    UNKNOWN = "unknown"


class StoreError(DataAccessError):
    """The datastore rejected or failed a well-formed statement."""

    def __init__(self, kind: StoreErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"[{self.kind.value}] {super().__str__()}"


class MappingError(DataAccessError):
    """A row did not match the expected shape (schema drift; always a defect)."""
