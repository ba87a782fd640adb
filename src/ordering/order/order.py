"""Order aggregate (CQRS) — an immutable, priced record of a checkout.

Line items and their prices are frozen at creation. After that only the
payment status moves, and only forward:

    Pending    → Paid | Failed      (cash on delivery, confirmed externally)
    Processing → Paid | Failed      (card / upi / netbanking via the gateway)
    Paid, Failed                    terminal

The order total is always the exact cent sum of quantity × price_at_purchase.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.errors import EmptyOrder, InvalidPaymentTransition, UnrecognizedValue
from ordering.order.events import OrderPaid, OrderPaymentFailed, OrderPlaced
from ordering.shared.money import line_total, sum_lines, to_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentMethod(Enum):
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    COD = "cod"

    @classmethod
    def parse(cls, value) -> "PaymentMethod":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower().replace("_", "").replace(" ", "").replace("-", "")
        for method in cls:
            if method.value == normalized:
                return method
        raise UnrecognizedValue("payment_method", value)


class PaymentStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    PAID = "Paid"
    FAILED = "Failed"


_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PROCESSING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: set(),  # terminal
    PaymentStatus.FAILED: set(),  # terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLineItem:
    """A product and quantity, priced at the moment of checkout.

    ``price_at_purchase`` and ``cod_eligible`` are copied from the catalogue
    during checkout and never recomputed, so later catalogue edits do not
    touch existing orders.
    """

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    price_at_purchase = Float(required=True, min_value=0.0)
    cod_eligible = Boolean(default=False)

    @property
    def subtotal(self) -> Decimal:
        return line_total(self.quantity, self.price_at_purchase)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    items = HasMany(OrderLineItem)
    total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")
    payment_method = String(max_length=20, choices=PaymentMethod, required=True)
    payment_status = String(
        max_length=20,
        choices=PaymentStatus,
        default=PaymentStatus.PROCESSING.value,
    )
    shipment_id = Identifier()
    failure_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_line_items(self):
        if not self.items:
            return
        expected = sum_lines((item.quantity, item.price_at_purchase) for item in self.items)
        if to_money(self.total) != expected:
            raise ValidationError({"total": [f"Order total {self.total} does not match line items ({expected})"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        user_id: str,
        lines: list[dict],
        payment_method: PaymentMethod,
        payment_status: PaymentStatus,
        currency: str = "USD",
    ) -> "Order":
        """Create a priced order draft. ``place()`` records it as placed.

        Args:
            user_id: The user placing the order.
            lines: Dicts with product_id, quantity, price_at_purchase and
                cod_eligible, already priced from the catalogue snapshot.
            payment_method: How the order will be paid.
            payment_status: Initial status for the payment method.
            currency: ISO currency code for the total.
        """
        if not lines:
            raise EmptyOrder()

        now = datetime.now(UTC)
        total = sum_lines((line["quantity"], line["price_at_purchase"]) for line in lines)

        order = cls(
            user_id=user_id,
            currency=currency.upper(),
            payment_method=payment_method.value,
            payment_status=payment_status.value,
            created_at=now,
            updated_at=now,
        )
        with atomic_change(order):
            for line in lines:
                order.add_items(
                    OrderLineItem(
                        product_id=line["product_id"],
                        quantity=line["quantity"],
                        price_at_purchase=float(to_money(line["price_at_purchase"])),
                        cod_eligible=bool(line.get("cod_eligible", False)),
                    )
                )
            order.total = float(total)
        return order

    def assign_payment_status(self, status) -> None:
        """Set the status the payment branch resolved for a new order.

        Only the open statuses are accepted; ``Paid`` and ``Failed`` are
        reached through ``mark_paid`` / ``mark_failed`` alone.
        """
        status = status if isinstance(status, PaymentStatus) else PaymentStatus(status)
        if status not in (PaymentStatus.PENDING, PaymentStatus.PROCESSING):
            raise InvalidPaymentTransition(self.payment_status, status.value)
        self.payment_status = status.value

    def place(self) -> None:
        self.raise_(
            OrderPlaced(
                order_id=str(self.id),
                user_id=str(self.user_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "quantity": item.quantity,
                            "price_at_purchase": str(to_money(item.price_at_purchase)),
                        }
                        for item in self.items
                    ]
                ),
                item_count=len(self.items),
                total=self.total,
                currency=self.currency,
                payment_method=self.payment_method,
                payment_status=self.payment_status,
                placed_at=self.created_at,
            )
        )

    # -------------------------------------------------------------------
    # Creation-time linking
    # -------------------------------------------------------------------
    def attach_shipment(self, shipment_id: str) -> None:
        """Link the shipment created alongside this order. Only once."""
        if self.shipment_id and str(self.shipment_id) != str(shipment_id):
            raise ValidationError({"shipment_id": ["Order already has a shipment"]})
        self.shipment_id = shipment_id

    # -------------------------------------------------------------------
    # Payment status transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: PaymentStatus) -> PaymentStatus:
        current = PaymentStatus(self.payment_status)
        if target not in _VALID_PAYMENT_TRANSITIONS[current]:
            raise InvalidPaymentTransition(current.value, target.value)
        return current

    def mark_paid(self) -> None:
        previous = self._assert_can_transition(PaymentStatus.PAID)
        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.updated_at = now
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                previous_status=previous.value,
                amount=self.total,
                paid_at=now,
            )
        )

    def mark_failed(self, reason: str | None = None) -> None:
        previous = self._assert_can_transition(PaymentStatus.FAILED)
        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        self.failure_reason = reason
        self.updated_at = now
        self.raise_(
            OrderPaymentFailed(
                order_id=str(self.id),
                previous_status=previous.value,
                reason=reason,
                failed_at=now,
            )
        )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value
