"""SQL implementation of ProductService."""

from __future__ import annotations

from sqlalchemy import bindparam, func, insert

from storefront.domain.cancellation import CancellationSignal
from storefront.domain.models.products import FilterRequest, Product, ProductDraft, ProductPage
from storefront.domain.services.products import ProductService, validate_product_draft
from storefront.infrastructure.persistence.binding import bind
from storefront.infrastructure.persistence.executor import QueryExecutor
from storefront.infrastructure.persistence.filters import PRODUCT_COLUMNS, compile_filter
from storefront.infrastructure.persistence.mapping import (
    ColumnSpec,
    RowMapper,
    read_bool,
    read_decimal,
    read_int,
    read_text,
    read_timestamp,
)
from storefront.infrastructure.persistence.models.products import Product as ProductTable

PRODUCT_MAPPER: RowMapper[Product] = RowMapper(
    Product,
    [
        ColumnSpec("Id", "id", read_int),
        ColumnSpec("Name", "name", read_text),
        ColumnSpec("Description", "description", read_text, nullable=True, default=""),
        ColumnSpec("Price", "price", read_decimal),
        ColumnSpec("Category", "category", read_text),
        ColumnSpec("InStock", "in_stock", read_bool),
        ColumnSpec("CreatedDate", "created_date", read_timestamp),
    ],
)

INSERT_PRODUCT = (
    insert(ProductTable)
    .values(
        {
            ProductTable.name: bindparam("name"),
            ProductTable.description: bindparam("description"),
            ProductTable.price: bindparam("price"),
            ProductTable.category: bindparam("category"),
            ProductTable.in_stock: bindparam("in_stock"),
            ProductTable.created_date: func.now(),
        }
    )
    .returning(*PRODUCT_COLUMNS)
)


class SqlProductService(ProductService):
    """Product operations backed by push-down queries.

    ``max_page_size`` bounds every listing; search and by-category listings
    return the first page at that size.
    """

    def __init__(self, executor: QueryExecutor, max_page_size: int = 100) -> None:
        self._executor = executor
        self._max_page_size = max_page_size

    async def list_products(
        self, request: FilterRequest, signal: CancellationSignal | None = None
    ) -> ProductPage:
        return await self._list(request, signal)

    async def create_product(
        self, draft: ProductDraft, signal: CancellationSignal | None = None
    ) -> Product:
        validate_product_draft(draft)
        bound = bind(
            INSERT_PRODUCT,
            {
                "name": draft.name,
                "description": draft.description,
                "price": draft.price,
                "category": draft.category,
                "in_stock": draft.in_stock,
            },
        )
        return await self._executor.execute_returning(bound, PRODUCT_MAPPER, signal)

    async def search_products(
        self, term: str, signal: CancellationSignal | None = None
    ) -> list[Product]:
        """First ``max_page_size`` matches by Id; page with ``list_products`` for more."""
        request = FilterRequest(search=term, page=1, page_size=self._max_page_size)
        page = await self._list(request, signal)
        return page.items

    async def list_products_by_category(
        self, category: str, signal: CancellationSignal | None = None
    ) -> list[Product]:
        """Case-insensitive category match, capped at ``max_page_size`` rows."""
        request = FilterRequest(category=category, page=1, page_size=self._max_page_size)
        page = await self._list(request, signal, fold_category=True)
        return page.items

    async def _list(
        self,
        request: FilterRequest,
        signal: CancellationSignal | None,
        *,
        fold_category: bool = False,
    ) -> ProductPage:
        listing = compile_filter(request, self._max_page_size, fold_category=fold_category)
        items = await self._executor.fetch_all(listing.page_query, PRODUCT_MAPPER, signal)
        total = await self._executor.fetch_scalar(listing.count_query, signal)
        return ProductPage(
            items=items,
            total_count=total or 0,
            page=listing.page,
            page_size=listing.page_size,
        )
