"""Filter/pagination compiler for product listings.

Turns a FilterRequest into a page query and a companion count query that
share one predicate, so filtering, ordering and paging all happen in the
datastore.  The predicate is built to select exactly the rows a naive
in-memory scan would keep:

    category        Category = value                     (when supplied)
                    lower(Category) = lower(value)       (fold_category)
    min_price       Price >= value                       (inclusive)
    max_price       Price <= value                       (inclusive)
    search          lower(Name) LIKE %term% OR
                    lower(Description) LIKE %term%       (case-insensitive,
                                                          LIKE wildcards in
                                                          the term escaped)

Rows are ordered by Id so consecutive pages are disjoint and contiguous
while the underlying data is unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import ColumnElement, Select, and_, func, or_, select

from storefront.domain.errors import InvalidRequestError
from storefront.domain.models.products import FilterRequest
from storefront.infrastructure.persistence.binding import BoundQuery, bind
from storefront.infrastructure.persistence.models.products import Product as ProductTable

PRODUCT_COLUMNS = (
    ProductTable.id.label("Id"),
    ProductTable.name.label("Name"),
    ProductTable.description.label("Description"),
    ProductTable.price.label("Price"),
    ProductTable.category.label("Category"),
    ProductTable.in_stock.label("InStock"),
    ProductTable.created_date.label("CreatedDate"),
)


@dataclass(frozen=True)
class CompiledListing:
    """Page query, count query, and the page/page_size actually applied."""

    page_query: BoundQuery
    count_query: BoundQuery
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def normalize_paging(page: int, page_size: int, max_page_size: int) -> tuple[int, int]:
    """Clamp ``page`` to >= 1 and ``page_size`` to the maximum.

    A non-positive page size is a caller error, not something to guess at.
    """
    if page_size <= 0:
        raise InvalidRequestError("Page size must be greater than 0")
    return max(page, 1), min(page_size, max_page_size)


def build_predicate(
    request: FilterRequest, *, fold_category: bool = False
) -> ColumnElement[bool] | None:
    """AND together the supplied filters; None when nothing is supplied."""
    clauses: list[ColumnElement[bool]] = []
    if request.category and fold_category:
        clauses.append(func.lower(ProductTable.category) == request.category.lower())
    elif request.category:
        clauses.append(ProductTable.category == request.category)
    if request.min_price is not None:
        clauses.append(ProductTable.price >= request.min_price)
    if request.max_price is not None:
        clauses.append(ProductTable.price <= request.max_price)
    if request.search:
        clauses.append(
            or_(
                ProductTable.name.icontains(request.search, autoescape=True),
                ProductTable.description.icontains(request.search, autoescape=True),
            )
        )
    if not clauses:
        return None
    return and_(*clauses)


def _where(stmt: Select, predicate: ColumnElement[bool] | None) -> Select:
    return stmt if predicate is None else stmt.where(predicate)


def compile_filter(
    request: FilterRequest, max_page_size: int, *, fold_category: bool = False
) -> CompiledListing:
    page, page_size = normalize_paging(request.page, request.page_size, max_page_size)
    predicate = build_predicate(request, fold_category=fold_category)

    page_stmt = (
        _where(select(*PRODUCT_COLUMNS), predicate)
        .order_by(ProductTable.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    count_stmt = _where(select(func.count()).select_from(ProductTable), predicate)

    return CompiledListing(
        page_query=bind(page_stmt),
        count_query=bind(count_stmt),
        page=page,
        page_size=page_size,
    )
