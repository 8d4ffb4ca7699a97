"""Stock movements shared by checkout, order edits and cancellation.

Products are always locked in primary-key order so concurrent orders
touching the same products cannot deadlock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Protocol
from uuid import UUID

import structlog

from modules.products.exceptions import (
    InsufficientStock,
    ProductNotFound,
    ProductUnavailable,
)

if TYPE_CHECKING:
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class StockLine(Protocol):
    product_id: UUID
    quantity: int


def reserve_lines(
    product_repository: IProductRepository, items: Iterable[Any]
) -> List[Dict[str, Any]]:
    """Lock, check and deduct stock for *items*.

    Returns one dict per item (in the given order) with the snapshot the
    order repository persists: product, quantity, unit price and the
    product tax rate.

    Raises:
        ProductNotFound: an item references an unknown product.
        ProductUnavailable: the product is inactive.
        InsufficientStock: the product has fewer units than requested.
    """
    items = list(items)
    reserved: Dict[str, Dict[str, Any]] = {}

    for item in sorted(items, key=lambda i: str(i.product_id)):
        product = product_repository.get_for_update(str(item.product_id))
        if not product:
            raise ProductNotFound(
                f"Producto {item.product_id} no encontrado.", attr="items"
            )
        if not product.is_active:
            raise ProductUnavailable(
                f"Producto {product.name} no disponible.", attr="items"
            )
        if product.stock_quantity < item.quantity:
            raise InsufficientStock(
                f"Stock insuficiente para {product.name}. "
                f"Disponible: {product.stock_quantity}, solicitado: {item.quantity}",
                attr="items",
            )

        if item.unit_price != product.price_with_tax:
            logger.info(
                "order.unit_price_mismatch",
                product_id=str(product.id),
                client_price=str(item.unit_price),
                catalog_price=str(product.price_with_tax),
            )

        product_repository.reserve_stock(product, item.quantity)
        reserved[str(item.product_id)] = {
            "product_id": product.id,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "tax_rate": product.tax_rate,
        }

    return [reserved[str(item.product_id)] for item in items]


def release_lines(
    product_repository: IProductRepository, items: Iterable[StockLine]
) -> None:
    """Give the units of *items* back to stock."""
    for item in sorted(items, key=lambda i: str(i.product_id)):
        product_repository.release_stock(str(item.product_id), item.quantity)
