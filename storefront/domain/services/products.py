"""Product service capability set and draft validation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from storefront.domain.cancellation import CancellationSignal
from storefront.domain.errors import InvalidRequestError
from storefront.domain.models.products import FilterRequest, Product, ProductDraft, ProductPage

MIN_NAME_LENGTH = 3

# Products.Price is NUMERIC(18, 2).
PRICE_QUANTUM = Decimal("0.01")
MAX_PRICE = Decimal(10) ** 16


class ProductService(ABC):
    """Operations callers may perform on the product catalog.

    Filtering, searching and paging are always evaluated by the datastore;
    implementations must not post-filter a materialized table.
    """

    @abstractmethod
    async def list_products(
        self, request: FilterRequest, signal: CancellationSignal | None = None
    ) -> ProductPage:
        """Return one page of matching products and the total match count."""

    @abstractmethod
    async def create_product(
        self, draft: ProductDraft, signal: CancellationSignal | None = None
    ) -> Product:
        """Validate and insert a product.  Invalid drafts never reach the store."""

    @abstractmethod
    async def search_products(
        self, term: str, signal: CancellationSignal | None = None
    ) -> list[Product]:
        """Return products whose name or description contains ``term`` (case-insensitive).

        Only the first page of matches is returned, at the implementation's
        maximum page size; use ``list_products`` to page through the rest.
        """

    @abstractmethod
    async def list_products_by_category(
        self, category: str, signal: CancellationSignal | None = None
    ) -> list[Product]:
        """Return products in ``category``, compared case-insensitively.

        Capped like ``search_products``.
        """


def validate_product_draft(draft: ProductDraft) -> None:
    """Raise InvalidRequestError if ``draft`` breaks a product invariant."""
    if not draft.name:
        raise InvalidRequestError("Product name is required")
    if len(draft.name) < MIN_NAME_LENGTH:
        raise InvalidRequestError(
            f"Product name must be at least {MIN_NAME_LENGTH} characters"
        )
    if not draft.price.is_finite() or draft.price <= 0:
        raise InvalidRequestError("Product price must be greater than 0")
    if draft.price >= MAX_PRICE:
        raise InvalidRequestError("Product price is too large")
    if draft.price != draft.price.quantize(PRICE_QUANTUM):
        raise InvalidRequestError("Product price must have at most 2 decimal places")
    if not draft.category:
        raise InvalidRequestError("Product category is required")
