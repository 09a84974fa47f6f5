"""Table registry: importing this package registers every table with
Base.metadata so ``init_schema`` sees them.
"""

from storefront.infrastructure.persistence.models.products import Product
from storefront.infrastructure.persistence.models.users import User

__all__ = ["Product", "User"]
