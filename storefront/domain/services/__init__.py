"""Entity service capability sets."""

from .products import ProductService, validate_product_draft
from .users import UserService, validate_new_user

__all__ = [
    "ProductService",
    "UserService",
    "validate_new_user",
    "validate_product_draft",
]
