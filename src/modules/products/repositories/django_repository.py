"""Django ORM implementation of the Product catalog."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.products.models import Product, ProductStatus
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Deactivate a product; products referenced by orders are never removed."""
        product = self.get_by_id(id)
        if not product:
            return False
        product.status = ProductStatus.INACTIVE
        product.save(update_fields=["status"])
        logger.info("product.deactivated", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def reserve_stock(self, product: Product, quantity: int) -> Product:
        product.stock_quantity -= quantity
        product.save(update_fields=["stock_quantity"])
        logger.info(
            "product.stock_reserved",
            product_id=str(product.id),
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return product

    @transaction.atomic
    def release_stock(self, product_id: str, quantity: int) -> Optional[Product]:
        product = self.get_for_update(product_id)
        if not product:
            return None
        product.stock_quantity += quantity
        product.save(update_fields=["stock_quantity"])
        logger.info(
            "product.stock_released",
            product_id=str(product.id),
            quantity=quantity,
            restored_stock=product.stock_quantity,
        )
        return product
