"""Product repository interface.

Extends ``IRepository[Product]`` with the batched look-up and batched
stock overwrite required by order creation.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.dtos import StockUpdateDTO
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def find_all_by_id(self, ids: Iterable[str]) -> List[Product]:
        """Resolve many products in one query.

        Only matching products are returned; unknown or malformed ids are
        silently omitted.  No ordering guarantee relative to ``ids``.
        """

    @abstractmethod
    def update_quantity(self, updates: List[StockUpdateDTO]) -> None:
        """Overwrite the stock of each named product with an absolute value.

        Raises:
            StaleStock: an update carrying ``expected_quantity`` found a
                different stored quantity.  No update in the batch is kept.
        """
