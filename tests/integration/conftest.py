"""Fixtures backing the services with a temporary SQLite file.

An explicit queue pool is used so ``engine.pool.checkedout()`` reports
borrowed connections.
"""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from storefront.domain.models import ProductDraft
from storefront.infrastructure.database import ConnectionProvider, init_schema
from storefront.infrastructure.persistence.executor import QueryExecutor
from storefront.infrastructure.persistence.services import SqlProductService, SqlUserService

CATALOG = [
    ProductDraft(name="Desk Lamp", description="Warm LED light", price=Decimal("19.99"), category="lighting", in_stock=True),
    ProductDraft(name="Floor Lamp", description="Tall and bright", price=Decimal("89.00"), category="lighting"),
    ProductDraft(name="Oak Chair", description="Solid oak seat", price=Decimal("120.00"), category="furniture", in_stock=True),
    ProductDraft(name="Pine Table", description="Seats six", price=Decimal("310.50"), category="furniture"),
    ProductDraft(name="100% Cotton Tee", description="Soft basic", price=Decimal("12.00"), category="apparel", in_stock=True),
    ProductDraft(name="Wool_Socks", description="Warm feet", price=Decimal("9.99"), category="apparel"),
    ProductDraft(name="LAMPSHADE", description="Linen cover", price=Decimal("15.00"), category="lighting"),
    ProductDraft(name="Mug", description="", price=Decimal("7.50"), category="kitchen", in_stock=True),
    ProductDraft(name="Kettle", description="Boils water fast", price=Decimal("45.00"), category="kitchen"),
    ProductDraft(name="Spatula", description="Heat resistant", price=Decimal("10.00"), category="kitchen"),
    ProductDraft(name="Bookshelf", description="Holds lamps too", price=Decimal("150.00"), category="furniture"),
    ProductDraft(name="Rain Jacket", description="Keeps you dry", price=Decimal("89.00"), category="apparel"),
]


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'store.db'}",
        poolclass=AsyncAdaptedQueuePool,
    )
    await init_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def provider(engine):
    return ConnectionProvider(engine)


@pytest.fixture
def executor(provider):
    return QueryExecutor(provider)


@pytest.fixture
def users(executor):
    return SqlUserService(executor)


@pytest.fixture
def max_page_size():
    return 50


@pytest.fixture
def products(executor, max_page_size):
    return SqlProductService(executor, max_page_size=max_page_size)


@pytest.fixture
async def catalog(products):
    return [await products.create_product(draft) for draft in CATALOG]
