"""ProductService against a real (SQLite) store.

Push-down results are compared against a naive in-memory scan of every row.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import insert

from storefront.domain.cancellation import CancellationSignal
from storefront.domain.errors import CanceledError, InvalidRequestError
from storefront.domain.models import FilterRequest, ProductDraft
from storefront.infrastructure.persistence.binding import bind
from storefront.infrastructure.persistence.filters import compile_filter
from storefront.infrastructure.persistence.models.products import Product as ProductTable
from storefront.infrastructure.persistence.services import SqlProductService

INJECTION = "x' OR '1'='1"


def _naive(rows, request):
    """Reference semantics: filter a full in-memory scan."""
    kept = []
    for p in rows:
        if request.category and p.category != request.category:
            continue
        if request.min_price is not None and p.price < request.min_price:
            continue
        if request.max_price is not None and p.price > request.max_price:
            continue
        if request.search:
            term = request.search.lower()
            if term not in p.name.lower() and term not in p.description.lower():
                continue
        kept.append(p)
    return sorted(kept, key=lambda p: p.id)


async def test_create_product_assigns_id_and_timestamp(products):
    created = await products.create_product(
        ProductDraft(name="Desk Lamp", price=Decimal("19.99"), category="lighting")
    )
    assert created.id > 0
    assert isinstance(created.created_date, datetime)
    assert created.price == Decimal("19.99")
    assert created.description == ""
    assert created.in_stock is False


async def test_empty_filter_matches_full_scan(products, catalog, max_page_size):
    page = await products.list_products(FilterRequest(page_size=max_page_size))
    assert [p.id for p in page.items] == sorted(p.id for p in catalog)
    assert page.total_count == len(catalog)
    assert page.items == sorted(catalog, key=lambda p: p.id)


@pytest.mark.parametrize(
    "request_",
    [
        FilterRequest(category="lighting"),
        FilterRequest(category="Lighting"),
        FilterRequest(min_price=Decimal("15.00")),
        FilterRequest(max_price=Decimal("12.00")),
        FilterRequest(min_price=Decimal("10.00"), max_price=Decimal("89.00")),
        FilterRequest(min_price=Decimal("100"), max_price=Decimal("10")),
        FilterRequest(search="lamp"),
        FilterRequest(search="WARM"),
        FilterRequest(search="%"),
        FilterRequest(search="_"),
        FilterRequest(search=INJECTION),
        FilterRequest(category="furniture", search="oak"),
        FilterRequest(category="apparel", max_price=Decimal("50"), search="o"),
    ],
)
async def test_push_down_equals_naive_filter(products, catalog, max_page_size, request_):
    expected = [p.id for p in _naive(catalog, request_)]
    page = await products.list_products(request_.model_copy(update={"page_size": max_page_size}))
    assert [p.id for p in page.items] == expected
    assert page.total_count == len(expected)


async def test_wildcard_terms_match_literally(products, catalog):
    assert [p.name for p in await products.search_products("%")] == ["100% Cotton Tee"]
    assert [p.name for p in await products.search_products("_")] == ["Wool_Socks"]


async def test_injection_search_matches_nothing(products, catalog):
    assert await products.search_products(INJECTION) == []


async def test_total_count_independent_of_page_size(products, catalog):
    small = await products.list_products(FilterRequest(category="kitchen", page_size=1))
    large = await products.list_products(FilterRequest(category="kitchen", page_size=10))
    assert small.total_count == large.total_count == 3
    assert len(small.items) == 1
    assert small.total_pages == 3


async def test_consecutive_pages_are_disjoint_and_contiguous(products, catalog):
    ordered = sorted(p.id for p in catalog)
    first = await products.list_products(FilterRequest(page=1, page_size=4))
    second = await products.list_products(FilterRequest(page=2, page_size=4))
    first_ids = [p.id for p in first.items]
    second_ids = [p.id for p in second.items]
    assert not set(first_ids) & set(second_ids)
    assert first_ids + second_ids == ordered[:8]


async def test_page_past_end_is_empty_with_total(products, catalog):
    page = await products.list_products(FilterRequest(page=99, page_size=5))
    assert page.items == []
    assert page.total_count == len(catalog)


async def test_page_below_one_is_clamped(products, catalog):
    page = await products.list_products(FilterRequest(page=0, page_size=3))
    assert page.page == 1
    assert [p.id for p in page.items] == sorted(p.id for p in catalog)[:3]


async def test_oversized_page_size_is_clamped(products, catalog, max_page_size):
    page = await products.list_products(FilterRequest(page_size=10_000))
    assert page.page_size == max_page_size
    assert len(page.items) == len(catalog)


async def test_zero_page_size_rejected(products):
    with pytest.raises(InvalidRequestError):
        await products.list_products(FilterRequest(page_size=0))


async def test_search_is_case_insensitive_on_name_or_description(products, catalog):
    names = {p.name for p in await products.search_products("LAMP")}
    assert names == {"Desk Lamp", "Floor Lamp", "LAMPSHADE", "Bookshelf"}


async def test_by_category_lists_only_that_category(products, catalog):
    found = await products.list_products_by_category("apparel")
    assert {p.name for p in found} == {"100% Cotton Tee", "Wool_Socks", "Rain Jacket"}
    assert await products.list_products_by_category("garden") == []


async def test_null_description_reads_as_empty(products, executor):
    stmt = insert(ProductTable).values(
        name="Bare Item",
        description=None,
        price=Decimal("3.00"),
        category="misc",
        in_stock=False,
    )
    assert await executor.execute(bind(stmt)) == 1
    [item] = await products.list_products_by_category("misc")
    assert item.description == ""
    assert await products.search_products("bare") == [item]


async def test_cancel_mid_cursor_leaves_pool_clean(
    engine, provider, executor, catalog, max_page_size
):
    listing = compile_filter(FilterRequest(), max_page_size)
    signal = CancellationSignal()
    with pytest.raises(CanceledError):
        async with executor.query(listing.page_query, signal) as cursor:
            assert await cursor.fetchone() is not None
            signal.cancel()
            await cursor.fetchone()
    assert provider.borrowed == 0
    assert engine.pool.checkedout() == 0


async def test_cancelled_listing_dispatches_nothing(engine, provider, products):
    signal = CancellationSignal()
    signal.cancel()
    with pytest.raises(CanceledError):
        await products.list_products(FilterRequest(), signal)
    assert provider.borrowed == 0
    assert engine.pool.checkedout() == 0


async def test_pool_clean_after_normal_listing(engine, provider, products, catalog):
    await products.list_products(FilterRequest(page_size=2))
    assert provider.borrowed == 0
    assert engine.pool.checkedout() == 0


async def test_sub_cent_price_rejected_before_store(products, max_page_size):
    with pytest.raises(InvalidRequestError):
        await products.create_product(
            ProductDraft(name="Penny Item", price=Decimal("0.001"), category="misc")
        )
    page = await products.list_products(FilterRequest(page_size=max_page_size))
    assert page.total_count == 0


async def test_by_category_ignores_case(products, catalog):
    expected = {"100% Cotton Tee", "Wool_Socks", "Rain Jacket"}
    assert {p.name for p in await products.list_products_by_category("Apparel")} == expected
    assert {p.name for p in await products.list_products_by_category("APPAREL")} == expected
    page = await products.list_products(FilterRequest(category="Apparel"))
    assert page.total_count == 0


async def test_search_returns_first_page_only(executor, catalog):
    capped = SqlProductService(executor, max_page_size=2)
    found = await capped.search_products("a")
    assert len(found) == 2
    page = await capped.list_products(FilterRequest(search="a", page=2, page_size=2))
    assert page.total_count > 2
    assert not {p.id for p in found} & {p.id for p in page.items}
