"""Order creation exceptions.

Raised by the Service Layer when an order request cannot be honoured.
None of them is retryable as-is.  The API layer (Views) catches these
and translates them into HTTP responses.
"""

from __future__ import annotations

from typing import List, Tuple


class OrderCreationError(Exception):
    """Base class for every rejected order request."""


class CustomerNotFound(OrderCreationError):
    """The customer referenced by the order does not exist."""

    def __init__(self, customer_id: str) -> None:
        self.customer_id = customer_id
        super().__init__(f"Customer {customer_id} not found.")


class NoProductsFound(OrderCreationError):
    """None of the requested product ids matched a product."""

    def __init__(self) -> None:
        super().__init__("Could not find any products with the given ids.")


class ProductsNotFound(OrderCreationError):
    """Some, but not all, requested product ids are unknown."""

    def __init__(self, missing_ids: List[str]) -> None:
        self.missing_ids = missing_ids
        super().__init__(f"Could not find products {', '.join(missing_ids)}.")


class InsufficientStock(OrderCreationError):
    """At least one product has less stock than requested.

    ``items`` holds ``(product_id, requested_quantity)`` for every
    offending line.
    """

    def __init__(self, items: List[Tuple[str, int]]) -> None:
        self.items = items
        quantities = ", ".join(str(quantity) for _, quantity in items)
        product_ids = ", ".join(product_id for product_id, _ in items)
        super().__init__(
            f"The quantity {quantities} is not available for {product_ids}."
        )


class StockConflict(OrderCreationError):
    """Stock changed between validation and decrement; the order was rolled back."""

    def __init__(self, product_ids: List[str]) -> None:
        self.product_ids = product_ids
        super().__init__(
            f"Stock for {', '.join(product_ids)} changed while the order was "
            f"being placed. Please retry."
        )


class OrderNotFound(Exception):
    """The requested order does not exist."""
