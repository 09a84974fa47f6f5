"""Products table definition."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, Numeric, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from storefront.infrastructure.database import Base


class Product(Base):
    """Catalog record.  Price is a fixed-point currency amount."""

    __tablename__ = "Products"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column("Name", Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column("Description", Text, nullable=True)
    price: Mapped[Decimal] = mapped_column("Price", Numeric(18, 2), nullable=False)
    category: Mapped[str] = mapped_column("Category", Text, nullable=False, index=True)
    in_stock: Mapped[bool] = mapped_column("InStock", Boolean, nullable=False, default=False)
    created_date: Mapped[datetime] = mapped_column(
        "CreatedDate", DateTime(timezone=True), server_default=func.now(), nullable=False
    )
