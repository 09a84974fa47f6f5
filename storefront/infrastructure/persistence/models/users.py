"""Users table definition."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from storefront.infrastructure.database import Base


class User(Base):
    """Identity record.  Column names follow the existing PascalCase schema."""

    __tablename__ = "Users"
    __table_args__ = (UniqueConstraint("Username", name="uq_users_username"),)

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column("Username", Text, nullable=False)
    email: Mapped[str] = mapped_column("Email", Text, nullable=False)
    password: Mapped[str] = mapped_column("Password", Text, nullable=False)  # opaque credential
    created_date: Mapped[datetime] = mapped_column(
        "CreatedDate", DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    is_active: Mapped[bool] = mapped_column("IsActive", Boolean, nullable=False, default=True)
    role: Mapped[Optional[str]] = mapped_column("Role", Text, nullable=True)
