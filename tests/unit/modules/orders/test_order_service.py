"""Unit tests for OrderService with mocked repositories."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest

from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    CustomerNotFound,
    InsufficientStock,
    NoProductsFound,
    OrderNotFound,
    ProductsNotFound,
    StockConflict,
)
from modules.orders.services import OrderService
from modules.products.exceptions import StaleStock

pytestmark = pytest.mark.unit


@dataclass
class StubCustomer:
    id: UUID


@dataclass
class StubProduct:
    id: UUID
    price: Decimal
    stock_quantity: int


@dataclass
class StubOrderItem:
    product_id: UUID
    quantity: int


def _call_create_order(service: OrderService, dto: CreateOrderDTO):
    return OrderService.create_order.__wrapped__(service, dto)


def _persisted_order(items: list[StubOrderItem]) -> MagicMock:
    order = MagicMock()
    order.id = uuid4()
    order.items.all.return_value = items
    return order


@pytest.fixture()
def service_and_repos():
    order_repo = MagicMock()
    customer_repo = MagicMock()
    product_repo = MagicMock()
    service = OrderService(order_repo, customer_repo, product_repo)
    return service, order_repo, customer_repo, product_repo


@pytest.fixture()
def customer():
    return StubCustomer(id=uuid4())


@pytest.fixture()
def p1():
    return StubProduct(id=uuid4(), price=Decimal("10.00"), stock_quantity=5)


@pytest.fixture()
def p2():
    return StubProduct(id=uuid4(), price=Decimal("20.00"), stock_quantity=2)


class TestCreateOrderSuccess:
    def test_persists_items_with_price_snapshot(
        self, service_and_repos, customer, p1, p2
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1, p2]
        order = _persisted_order(
            [StubOrderItem(p1.id, 3), StubOrderItem(p2.id, 2)]
        )
        order_repo.create.return_value = order

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=p1.id, quantity=3),
                CreateOrderItemDTO(product_id=p2.id, quantity=2),
            ],
        )
        result = _call_create_order(service, dto)

        assert result is order
        payload = order_repo.create.call_args.args[0]
        assert payload["customer"] is customer
        assert payload["items"] == [
            {"product_id": p1.id, "quantity": 3, "unit_price": Decimal("10.00")},
            {"product_id": p2.id, "quantity": 2, "unit_price": Decimal("20.00")},
        ]

    def test_issues_single_batched_stock_update(
        self, service_and_repos, customer, p1, p2
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1, p2]
        order_repo.create.return_value = _persisted_order(
            [StubOrderItem(p1.id, 3), StubOrderItem(p2.id, 2)]
        )

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=p1.id, quantity=3),
                CreateOrderItemDTO(product_id=p2.id, quantity=2),
            ],
        )
        _call_create_order(service, dto)

        product_repo.update_quantity.assert_called_once()
        updates = product_repo.update_quantity.call_args.args[0]
        assert [(u.product_id, u.quantity, u.expected_quantity) for u in updates] == [
            (p1.id, 2, 5),
            (p2.id, 0, 2),
        ]

    def test_looks_up_products_once_with_distinct_ids(
        self, service_and_repos, customer, p1
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1]
        order_repo.create.return_value = _persisted_order([StubOrderItem(p1.id, 3)])

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=p1.id, quantity=1),
                CreateOrderItemDTO(product_id=p1.id, quantity=2),
            ],
        )
        _call_create_order(service, dto)

        product_repo.find_all_by_id.assert_called_once_with([str(p1.id)])

    def test_matches_products_by_id_not_position(
        self, service_and_repos, customer, p1, p2
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        # Resolved in the opposite order of the request.
        product_repo.find_all_by_id.return_value = [p2, p1]
        order_repo.create.return_value = _persisted_order(
            [StubOrderItem(p1.id, 1), StubOrderItem(p2.id, 1)]
        )

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=p1.id, quantity=1),
                CreateOrderItemDTO(product_id=p2.id, quantity=1),
            ],
        )
        _call_create_order(service, dto)

        items = order_repo.create.call_args.args[0]["items"]
        prices = {item["product_id"]: item["unit_price"] for item in items}
        assert prices == {p1.id: Decimal("10.00"), p2.id: Decimal("20.00")}

    def test_duplicate_products_are_merged_before_stock_check(
        self, service_and_repos, customer, p1
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1]

        # 3 + 3 exceeds stock of 5 although each line alone fits.
        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=p1.id, quantity=3),
                CreateOrderItemDTO(product_id=p1.id, quantity=3),
            ],
        )
        with pytest.raises(InsufficientStock) as exc_info:
            _call_create_order(service, dto)

        assert exc_info.value.items == [(str(p1.id), 6)]
        order_repo.create.assert_not_called()

    def test_duplicate_products_become_one_line(
        self, service_and_repos, customer, p1
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1]
        order_repo.create.return_value = _persisted_order([StubOrderItem(p1.id, 5)])

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=p1.id, quantity=2),
                CreateOrderItemDTO(product_id=p1.id, quantity=3),
            ],
        )
        _call_create_order(service, dto)

        items = order_repo.create.call_args.args[0]["items"]
        assert items == [
            {"product_id": p1.id, "quantity": 5, "unit_price": Decimal("10.00")}
        ]
        updates = product_repo.update_quantity.call_args.args[0]
        assert [(u.product_id, u.quantity) for u in updates] == [(p1.id, 0)]

    def test_stock_decrement_uses_persisted_quantities(
        self, service_and_repos, customer, p1
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1]
        # The store split the line in two; totals still add up.
        order_repo.create.return_value = _persisted_order(
            [StubOrderItem(p1.id, 1), StubOrderItem(p1.id, 2)]
        )

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[CreateOrderItemDTO(product_id=p1.id, quantity=3)],
        )
        _call_create_order(service, dto)

        updates = product_repo.update_quantity.call_args.args[0]
        assert [(u.product_id, u.quantity) for u in updates] == [(p1.id, 2)]

    def test_requesting_exact_stock_succeeds(self, service_and_repos, customer, p2):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p2]
        order_repo.create.return_value = _persisted_order([StubOrderItem(p2.id, 2)])

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[CreateOrderItemDTO(product_id=p2.id, quantity=2)],
        )
        _call_create_order(service, dto)

        updates = product_repo.update_quantity.call_args.args[0]
        assert updates[0].quantity == 0


class TestCreateOrderRejections:
    def test_unknown_customer_short_circuits(self, service_and_repos, p1):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = None
        customer_id = uuid4()

        dto = CreateOrderDTO(
            customer_id=customer_id,
            items=[CreateOrderItemDTO(product_id=p1.id, quantity=1)],
        )
        with pytest.raises(CustomerNotFound) as exc_info:
            _call_create_order(service, dto)

        assert exc_info.value.customer_id == str(customer_id)
        customer_repo.get_by_id.assert_called_once_with(str(customer_id))
        product_repo.find_all_by_id.assert_not_called()
        product_repo.update_quantity.assert_not_called()
        order_repo.create.assert_not_called()

    def test_no_products_found(self, service_and_repos, customer):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = []

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[CreateOrderItemDTO(product_id=uuid4(), quantity=1)],
        )
        with pytest.raises(NoProductsFound):
            _call_create_order(service, dto)

        order_repo.create.assert_not_called()
        product_repo.update_quantity.assert_not_called()

    def test_products_not_found_lists_exactly_missing_ids(
        self, service_and_repos, customer, p1
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1]
        missing_a, missing_b = uuid4(), uuid4()

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=missing_a, quantity=1),
                CreateOrderItemDTO(product_id=p1.id, quantity=1),
                CreateOrderItemDTO(product_id=missing_b, quantity=1),
            ],
        )
        with pytest.raises(ProductsNotFound) as exc_info:
            _call_create_order(service, dto)

        assert exc_info.value.missing_ids == [str(missing_a), str(missing_b)]
        order_repo.create.assert_not_called()

    def test_insufficient_stock_lists_only_violating_items(
        self, service_and_repos, customer, p1, p2
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1, p2]

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                CreateOrderItemDTO(product_id=p1.id, quantity=5),
                CreateOrderItemDTO(product_id=p2.id, quantity=3),
            ],
        )
        with pytest.raises(InsufficientStock) as exc_info:
            _call_create_order(service, dto)

        assert exc_info.value.items == [(str(p2.id), 3)]
        assert str(p2.id) in str(exc_info.value)
        order_repo.create.assert_not_called()
        product_repo.update_quantity.assert_not_called()

    def test_order_store_failure_propagates_before_stock_update(
        self, service_and_repos, customer, p1
    ):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1]
        order_repo.create.side_effect = RuntimeError("database unavailable")

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[CreateOrderItemDTO(product_id=p1.id, quantity=1)],
        )
        with pytest.raises(RuntimeError, match="database unavailable"):
            _call_create_order(service, dto)

        product_repo.update_quantity.assert_not_called()

    def test_stale_stock_becomes_stock_conflict(self, service_and_repos, customer, p1):
        service, order_repo, customer_repo, product_repo = service_and_repos
        customer_repo.get_by_id.return_value = customer
        product_repo.find_all_by_id.return_value = [p1]
        order_repo.create.return_value = _persisted_order([StubOrderItem(p1.id, 1)])
        product_repo.update_quantity.side_effect = StaleStock([str(p1.id)])

        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[CreateOrderItemDTO(product_id=p1.id, quantity=1)],
        )
        with pytest.raises(StockConflict) as exc_info:
            _call_create_order(service, dto)

        assert exc_info.value.product_ids == [str(p1.id)]
        assert isinstance(exc_info.value.__cause__, StaleStock)


class TestGetOrder:
    def test_returns_order(self, service_and_repos):
        service, order_repo, _, _ = service_and_repos
        order = MagicMock()
        order_repo.get_by_id.return_value = order

        assert service.get_order("some-id") is order
        order_repo.get_by_id.assert_called_once_with("some-id")

    def test_missing_order_raises(self, service_and_repos):
        service, order_repo, _, _ = service_and_repos
        order_repo.get_by_id.return_value = None

        with pytest.raises(OrderNotFound):
            service.get_order(str(uuid4()))
