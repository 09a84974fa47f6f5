"""Domain model package.

All domain objects are Pydantic models with no ORM or infrastructure
dependencies.  Import from this package rather than individual modules.
"""

from .products import FilterRequest, Product, ProductDraft, ProductPage
from .users import User

__all__ = [
    "User",
    "Product",
    "ProductDraft",
    "FilterRequest",
    "ProductPage",
]
