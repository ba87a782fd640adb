"""Domain events for the Order aggregate.

Orders never change except for their payment status, so the event stream of
an order is its creation followed by at most one payment outcome. Together
they form the append-only audit trail of the order.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was created at checkout with prices frozen."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line item dicts
    item_count = Integer(required=True)
    total = Float(required=True)
    currency = String(max_length=3, required=True)
    payment_method = String(max_length=20, required=True)
    payment_status = String(max_length=20, required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """An external confirmation reported the payment as captured."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(max_length=20, required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentFailed:
    """An external confirmation reported the payment as failed."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(max_length=20, required=True)
    reason = String(max_length=500)
    failed_at = DateTime(required=True)
