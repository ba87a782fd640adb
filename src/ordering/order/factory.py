"""Order Factory — turns reserved line items into a priced, unsaved Order.

Prices and COD eligibility are taken only from the product snapshot the
checkout read from the catalogue, never from the caller.
"""

import os
from collections.abc import Iterable, Mapping

from ordering.catalogue.port import ProductSnapshot
from ordering.errors import EmptyOrder, NotFound
from ordering.order.order import Order, PaymentMethod
from ordering.payment.branch import PaymentMethodBranch


class OrderFactory:
    def __init__(self, branch: PaymentMethodBranch | None = None, currency: str | None = None) -> None:
        self.branch = branch or PaymentMethodBranch()
        self.currency = currency or os.environ.get("CHECKOUT_CURRENCY", "USD")

    def build(
        self,
        user_id: str,
        reserved_line_items: Iterable,
        product_snapshot: Mapping[str, ProductSnapshot],
        payment_method,
    ) -> Order:
        """Build an order from ``(product_id, quantity)`` lines.

        Raises:
            EmptyOrder: when there are no line items.
            NotFound: when a line names a product missing from the snapshot.
        """
        method = PaymentMethod.parse(payment_method)

        lines = []
        for product_id, quantity in reserved_line_items:
            product = product_snapshot.get(str(product_id))
            if product is None:
                raise NotFound("Product", product_id)
            lines.append(
                {
                    "product_id": str(product_id),
                    "quantity": quantity,
                    "price_at_purchase": product.price,
                    "cod_eligible": product.cod_available,
                }
            )
        if not lines:
            raise EmptyOrder()

        order = Order.create(
            user_id=user_id,
            lines=lines,
            payment_method=method,
            payment_status=self.branch.initial_status(method),
            currency=self.currency,
        )
        order.assign_payment_status(self.branch.resolve(order, method))
        order.place()
        return order
