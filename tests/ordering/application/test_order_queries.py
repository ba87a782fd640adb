"""Application tests for order history and lookup."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.errors import NotFound
from ordering.order.order import Order, PaymentMethod, PaymentStatus
from ordering.order.queries import get_order, list_orders
from protean import current_domain


def _add_orders(user_id, count):
    base = datetime(2026, 1, 1, tzinfo=UTC)
    repo = current_domain.repository_for(Order)
    ids = []
    for i in range(count):
        order = Order.create(
            user_id=user_id,
            lines=[{"product_id": "mug", "quantity": 1, "price_at_purchase": "12.50", "cod_eligible": True}],
            payment_method=PaymentMethod.CARD,
            payment_status=PaymentStatus.PROCESSING,
        )
        order.created_at = base + timedelta(minutes=i)
        repo.add(order)
        ids.append(str(order.id))
    return ids


class TestListOrders:
    def test_only_own_orders(self):
        mine = _add_orders("user-001", 2)
        _add_orders("user-002", 1)

        assert {order["id"] for order in list_orders("user-001")} == set(mine)

    def test_history_beyond_one_page(self):
        ids = _add_orders("user-001", 105)

        orders = list_orders("user-001")

        assert len(orders) == 105
        assert [order["id"] for order in orders] == list(reversed(ids))

    def test_no_orders(self):
        assert list_orders("user-001") == []


class TestGetOrder:
    def test_existing_order(self):
        [order_id] = _add_orders("user-001", 1)
        assert str(get_order(order_id).id) == order_id

    def test_unknown_order(self):
        with pytest.raises(NotFound):
            get_order("missing")
