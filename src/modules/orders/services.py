"""Order service layer (Use Cases).

Orchestrates order creation against the product catalog.  The service
defines the unit-of-work boundary: every step of ``create_order`` runs
in one database transaction.

Checks run cheapest first and each one aborts the request:
1. Customer exists.
2. At least one requested product exists.
3. Every requested product exists.
4. Every product has enough stock (``stock >= requested``).

Stock is decremented last, after the order is persisted, with a
compare-and-swap write so a concurrent order cannot oversell.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Dict, List

import structlog

from django.db import transaction

from modules.orders.exceptions import (
    CustomerNotFound,
    InsufficientStock,
    NoProductsFound,
    OrderNotFound,
    ProductsNotFound,
    StockConflict,
)
from modules.products.dtos import StockUpdateDTO
from modules.products.exceptions import StaleStock

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create an order and decrement stock by the ordered quantities.

        Raises:
            CustomerNotFound: customer does not exist.
            NoProductsFound: none of the requested products exist.
            ProductsNotFound: some requested products do not exist.
            InsufficientStock: a product has less stock than requested.
            StockConflict: stock changed concurrently; nothing was kept.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        log.info("order.creation_started", item_count=len(dto.items))

        # 1. Customer
        customer = self._customer_repo.get_by_id(str(dto.customer_id))
        if not customer:
            log.info("order.rejected", reason="customer_not_found")
            raise CustomerNotFound(str(dto.customer_id))

        # 2. Batched product resolution
        requested = dto.requested_quantities()
        products = self._product_repo.find_all_by_id(list(requested))
        if not products:
            log.info("order.rejected", reason="no_products_found")
            raise NoProductsFound()

        products_by_id: Dict[str, Product] = {str(p.id): p for p in products}

        # 3. Every requested product resolved
        missing = [pid for pid in requested if pid not in products_by_id]
        if missing:
            log.info("order.rejected", reason="products_not_found", missing=missing)
            raise ProductsNotFound(missing)

        # 4. Stock sufficiency (inclusive boundary)
        unavailable = [
            (pid, quantity)
            for pid, quantity in requested.items()
            if products_by_id[pid].stock_quantity < quantity
        ]
        if unavailable:
            log.info("order.rejected", reason="insufficient_stock", items=unavailable)
            raise InsufficientStock(unavailable)

        order = self._order_repo.create(
            {
                "customer": customer,
                "items": [
                    {
                        "product_id": products_by_id[pid].id,
                        "quantity": quantity,
                        "unit_price": products_by_id[pid].price,
                    }
                    for pid, quantity in requested.items()
                ],
            }
        )

        self._decrement_stock(order, products_by_id)

        log.info("order.created", order_id=str(order.id))
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decrement_stock(self, order: Order, products_by_id: Dict[str, Product]) -> None:
        # Quantities come from the persisted items, not the raw request.
        ordered: Dict[str, int] = defaultdict(int)
        for item in order.items.all():
            ordered[str(item.product_id)] += item.quantity

        updates: List[StockUpdateDTO] = []
        for pid, quantity in ordered.items():
            product = products_by_id[pid]
            updates.append(
                StockUpdateDTO(
                    product_id=product.id,
                    quantity=product.stock_quantity - quantity,
                    expected_quantity=product.stock_quantity,
                )
            )

        try:
            self._product_repo.update_quantity(updates)
        except StaleStock as exc:
            logger.warning(
                "order.stock_conflict",
                order_id=str(order.id),
                product_ids=exc.product_ids,
            )
            raise StockConflict(exc.product_ids) from exc

        logger.info(
            "order.stock_updated",
            order_id=str(order.id),
            products=[(str(u.product_id), u.quantity) for u in updates],
        )
