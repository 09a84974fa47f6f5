"""User domain model.

Pure domain object; no ORM or persistence concerns.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """An identity record as stored in the Users table.

    Instances are immutable snapshots: the datastore is the source of truth
    and users are never updated through this layer.  ``password`` is the
    opaque stored credential and is kept out of ``repr`` so it cannot leak
    into logs or tracebacks.  ``role`` is None when unassigned.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    password: str = Field(repr=False)
    created_date: datetime
    is_active: bool
    role: str | None = None
