"""Tests for OrderFactory — pricing from the catalogue snapshot only."""

from decimal import Decimal

import pytest
from ordering.catalogue.port import ProductSnapshot
from ordering.errors import EmptyOrder, NotFound, UnrecognizedValue
from ordering.order.factory import OrderFactory
from ordering.shared.money import to_money


def _snapshot(**products):
    return {
        pid: ProductSnapshot(product_id=pid, name=pid.title(), price=Decimal(price), stock=10, cod_available=cod)
        for pid, (price, cod) in products.items()
    }


@pytest.fixture()
def factory():
    return OrderFactory(currency="USD")


class TestBuild:
    def test_prices_come_from_snapshot(self, factory):
        snapshot = _snapshot(mug=("12.50", True), tee=("20.00", False))
        order = factory.build("user-001", [("mug", 2), ("tee", 1)], snapshot, "card")
        assert to_money(order.total) == Decimal("45.00")
        prices = {i.product_id: i.price_at_purchase for i in order.items}
        assert prices == {"mug": 12.5, "tee": 20.0}

    def test_cod_eligibility_copied(self, factory):
        snapshot = _snapshot(mug=("12.50", True), tee=("20.00", False))
        order = factory.build("user-001", [("mug", 1), ("tee", 1)], snapshot, "cod")
        flags = {i.product_id: i.cod_eligible for i in order.items}
        assert flags == {"mug": True, "tee": False}

    def test_cod_starts_pending(self, factory):
        order = factory.build("user-001", [("mug", 1)], _snapshot(mug=("1.00", True)), "cod")
        assert order.payment_status == "Pending"

    @pytest.mark.parametrize("method", ["card", "upi", "netbanking"])
    def test_gateway_methods_start_processing(self, factory, method):
        order = factory.build("user-001", [("mug", 1)], _snapshot(mug=("1.00", True)), method)
        assert order.payment_status == "Processing"
        assert order.payment_method == method

    def test_order_is_unsaved(self, factory):
        from ordering.order.order import Order
        from protean import current_domain
        from protean.exceptions import ObjectNotFoundError

        order = factory.build("user-001", [("mug", 1)], _snapshot(mug=("1.00", True)), "card")
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Order).get(order.id)

    def test_currency_from_environment(self, monkeypatch):
        monkeypatch.setenv("CHECKOUT_CURRENCY", "INR")
        order = OrderFactory().build("user-001", [("mug", 1)], _snapshot(mug=("1.00", True)), "upi")
        assert order.currency == "INR"


class TestBuildFailures:
    def test_empty_lines(self, factory):
        with pytest.raises(EmptyOrder):
            factory.build("user-001", [], _snapshot(mug=("1.00", True)), "card")

    def test_missing_snapshot_entry(self, factory):
        with pytest.raises(NotFound) as exc:
            factory.build("user-001", [("mug", 1), ("ghost", 1)], _snapshot(mug=("1.00", True)), "card")
        assert exc.value.entity == "Product"
        assert exc.value.entity_id == "ghost"

    def test_unknown_payment_method(self, factory):
        with pytest.raises(UnrecognizedValue):
            factory.build("user-001", [("mug", 1)], _snapshot(mug=("1.00", True)), "barter")


class TestPaymentBranchResolution:
    def test_resolved_status_is_used(self):
        from ordering.order.order import PaymentStatus
        from ordering.payment.branch import PaymentMethodBranch

        class HoldBranch(PaymentMethodBranch):
            def resolve(self, order, payment_method):
                return PaymentStatus.PENDING

        order = OrderFactory(branch=HoldBranch()).build(
            "user-001", [("mug", 1)], _snapshot(mug=("1.00", True)), "card"
        )
        assert order.payment_status == "Pending"

    def test_branch_sees_priced_order(self):
        from ordering.payment.branch import PaymentMethodBranch

        seen = []

        class RecordingBranch(PaymentMethodBranch):
            def resolve(self, order, payment_method):
                seen.append((order.total, payment_method))
                return super().resolve(order, payment_method)

        OrderFactory(branch=RecordingBranch()).build("user-001", [("mug", 3)], _snapshot(mug=("2.50", True)), "upi")
        assert seen and seen[0][0] == 7.5

    def test_branch_cannot_settle_payment(self):
        from ordering.errors import InvalidPaymentTransition
        from ordering.order.order import PaymentStatus
        from ordering.payment.branch import PaymentMethodBranch

        class PayingBranch(PaymentMethodBranch):
            def resolve(self, order, payment_method):
                return PaymentStatus.PAID

        with pytest.raises(InvalidPaymentTransition):
            OrderFactory(branch=PayingBranch()).build("user-001", [("mug", 1)], _snapshot(mug=("1.00", True)), "card")
