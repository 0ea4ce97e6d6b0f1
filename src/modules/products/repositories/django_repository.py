"""Django ORM implementation of the Product repository.

Look-ups follow the Null Object pattern (missing products are omitted
or reported as ``None``).  Stock writes are compare-and-swap updates so
two orders racing for the same product cannot both succeed.
"""

from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.products.dtos import StockUpdateDTO
from modules.products.exceptions import StaleStock
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def _valid_uuids(ids: Iterable[str]) -> List[UUID]:
    valid = []
    for raw in ids:
        try:
            valid.append(raw if isinstance(raw, UUID) else UUID(str(raw)))
        except ValueError:
            continue
    return valid


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

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Validate and persist (create or update) a product.

        Raises:
            ValidationError: negative price or stock, or a duplicate SKU.
        """
        entity.full_clean()
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    def find_all_by_id(self, ids: Iterable[str]) -> List[Product]:
        uuids = _valid_uuids(ids)
        if not uuids:
            return []
        return list(Product.objects.filter(id__in=uuids))

    @transaction.atomic
    def update_quantity(self, updates: List[StockUpdateDTO]) -> None:
        now = timezone.now()
        stale: List[str] = []
        for update in updates:
            queryset = Product.objects.filter(id=update.product_id)
            if update.expected_quantity is not None:
                queryset = queryset.filter(stock_quantity=update.expected_quantity)
            rows = queryset.update(stock_quantity=update.quantity, updated_at=now)
            if rows == 0:
                stale.append(str(update.product_id))
                continue
            logger.info(
                "product.stock_updated",
                product_id=str(update.product_id),
                stock_quantity=update.quantity,
            )

        if stale:
            logger.warning("product.stale_stock", product_ids=stale)
            # Raising inside the atomic block rolls back the whole batch.
            raise StaleStock(stale)
