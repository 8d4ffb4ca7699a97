"""Product catalog interface.

Extends ``IRepository[Product]`` with the stock primitives used by order
creation (reservation) and cancellation (release).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Returns ``None`` if the product does not exist.
        """

    @abstractmethod
    def reserve_stock(self, product: Product, quantity: int) -> Product:
        """Deduct *quantity* from a product locked by ``get_for_update``."""

    @abstractmethod
    def release_stock(self, product_id: str, quantity: int) -> Optional[Product]:
        """Lock the product and give *quantity* units back to stock."""
