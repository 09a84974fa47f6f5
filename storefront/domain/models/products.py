"""Product domain models and listing request/response shapes."""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """A catalog record as stored in the Products table."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    price: Decimal
    category: str
    in_stock: bool
    created_date: datetime


class ProductDraft(BaseModel):
    """Caller input for creating a product.

    Construction only checks types.  Business invariants (name length,
    positive price, category present) are enforced by the product service so
    that a bad draft is rejected as InvalidRequestError without touching the
    store.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    category: str = ""
    in_stock: bool = False


class FilterRequest(BaseModel):
    """Query shape for product listing; never persisted.

    Empty strings for ``category`` and ``search`` mean "not supplied".
    ``page`` and ``page_size`` are normalized by the filter compiler, not
    here: page < 1 clamps to 1, page_size <= 0 is rejected and an oversized
    page_size is clamped to the configured maximum.
    """

    model_config = ConfigDict(frozen=True)

    category: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    search: str | None = None
    page: int = 1
    page_size: int = 10


class ProductPage(BaseModel):
    """One page of a product listing plus the store-side total."""

    model_config = ConfigDict(frozen=True)

    items: list[Product] = Field(default_factory=list)
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0
