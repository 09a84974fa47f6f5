"""Concrete SQL entity services.

Exports the SqlService classes and the get_services() factory for wiring at
the application boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.infrastructure.database import Settings
from storefront.infrastructure.persistence.executor import QueryExecutor

from .products import SqlProductService
from .users import SqlUserService


@dataclass
class Services:
    """Both entity services bound to one QueryExecutor."""

    users: SqlUserService
    products: SqlProductService


def get_services(executor: QueryExecutor, settings: Settings | None = None) -> Services:
    """Construct both services sharing ``executor`` (and so its pool).

        provider = ConnectionProvider.from_settings(get_settings())
        services = get_services(QueryExecutor(provider), get_settings())
        user = await services.users.get_user_by_id(42, signal)
    """
    max_page_size = settings.max_page_size if settings is not None else 100
    return Services(
        users=SqlUserService(executor),
        products=SqlProductService(executor, max_page_size=max_page_size),
    )


__all__ = [
    "SqlProductService",
    "SqlUserService",
    "Services",
    "get_services",
]
