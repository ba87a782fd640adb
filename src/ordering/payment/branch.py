"""Payment Method Branch — decides how an order's payment proceeds.

Cash on delivery needs no gateway: the order waits in ``Pending`` until the
courier confirms collection. Every other method goes to the gateway and sits
in ``Processing`` until the gateway reports back. Neither path marks an order
``Paid``; that only happens through an external confirmation.
"""

from ordering.order.order import PaymentMethod, PaymentStatus


class PaymentMethodBranch:
    def requires_payment(self, payment_method) -> bool:
        return PaymentMethod.parse(payment_method) != PaymentMethod.COD

    def initial_status(self, payment_method) -> PaymentStatus:
        if PaymentMethod.parse(payment_method) == PaymentMethod.COD:
            return PaymentStatus.PENDING
        return PaymentStatus.PROCESSING

    def resolve(self, order, payment_method) -> PaymentStatus:
        """Return the payment status the order should carry.

        The order is passed so adapters that branch on amount or line items
        (per-item COD eligibility, say) can do so without a signature change.
        """
        return self.initial_status(payment_method)
