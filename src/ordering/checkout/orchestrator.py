"""Checkout Orchestrator — turns a user's cart into an order and a shipment.

Steps:
    1. Parse the payment method and read the cart snapshot.
    2. Read authoritative price, stock and COD flag for every product.
    3. Reserve stock (all lines or none).
    4. Build the priced order; the payment branch resolves its initial
       payment status.
    5. Create the shipment, link it, and persist both in one unit of work.
    6. Ask the payment branch whether payment is required.
    7. Clear the cart (best effort).

Any failure in steps 4 to 6 rolls the unit of work back and returns the
reserved stock before the error propagates. Nothing before step 3 changes
state, so failures there need no compensation.
"""

import os
from dataclasses import asdict, dataclass

import structlog
from protean import UnitOfWork
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.cart.snapshot import CartSnapshotProvider
from ordering.catalogue import get_catalogue
from ordering.catalogue.port import CatalogueReader
from ordering.checkout.idempotency import IdempotencyStore, RecordState, get_idempotency_store
from ordering.errors import EmptyCart, PaymentGatewayError
from ordering.inventory.reservation import StockReservationService
from ordering.order.factory import OrderFactory
from ordering.order.order import Order, PaymentMethod
from ordering.payment.branch import PaymentMethodBranch
from ordering.payment.gateway import get_gateway
from ordering.shared.money import to_money
from ordering.shipment.shipment import Shipment
from ordering.shipment.tracking import ShipmentTracker

logger = structlog.get_logger(__name__)

CHECKOUT_MESSAGE = "Order created. Proceed to payment if needed."


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    payment_required: bool
    message: str = CHECKOUT_MESSAGE


class CheckoutOrchestrator:
    def __init__(
        self,
        catalogue: CatalogueReader | None = None,
        carts: CartSnapshotProvider | None = None,
        reservations: StockReservationService | None = None,
        factory: OrderFactory | None = None,
        tracker: ShipmentTracker | None = None,
        branch: PaymentMethodBranch | None = None,
        idempotency: IdempotencyStore | None = None,
        wait_seconds: float | None = None,
    ) -> None:
        self._catalogue = catalogue
        self.carts = carts or CartSnapshotProvider()
        self.reservations = reservations or StockReservationService()
        self.branch = branch or PaymentMethodBranch()
        self.factory = factory or OrderFactory(branch=self.branch)
        self.tracker = tracker or ShipmentTracker()
        self._idempotency = idempotency
        self.wait_seconds = (
            wait_seconds
            if wait_seconds is not None
            else float(os.environ.get("CHECKOUT_IDEMPOTENCY_WAIT_SECONDS", "30"))
        )

    @property
    def catalogue(self) -> CatalogueReader:
        return self._catalogue or get_catalogue()

    @property
    def idempotency(self) -> IdempotencyStore:
        return self._idempotency or get_idempotency_store()

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def checkout(self, user_id: str, payment_method, idempotency_key: str | None = None) -> CheckoutResult:
        if not idempotency_key:
            return self._checkout(user_id, payment_method)

        # Keys are scoped per user so two users can never collide
        scoped_key = f"{user_id}:{idempotency_key}"
        store = self.idempotency

        claimed, record = store.claim(scoped_key)
        if not claimed:
            if record.state == RecordState.PENDING:
                logger.info("Waiting for in-flight checkout", user_id=user_id, idempotency_key=idempotency_key)
                record = store.wait(record, self.wait_seconds)
            if record.state == RecordState.COMPLETED:
                logger.info(
                    "Replaying checkout result",
                    user_id=user_id,
                    idempotency_key=idempotency_key,
                    order_id=record.result["order_id"],
                )
                return CheckoutResult(**record.result)
            raise record.error

        try:
            result = self._checkout(user_id, payment_method)
        except Exception as exc:
            store.fail(scoped_key, exc)
            raise
        store.complete(scoped_key, asdict(result))
        return result

    def _checkout(self, user_id: str, payment_method) -> CheckoutResult:
        method = PaymentMethod.parse(payment_method)

        snapshot = self.carts.get_cart(user_id)
        if not snapshot:
            raise EmptyCart(user_id)
        line_items = [(line["product_id"], line["quantity"]) for line in snapshot]

        products = {}
        for product_id, _ in line_items:
            if product_id not in products:
                products[product_id] = self.catalogue.get_product(product_id)

        reservation = self.reservations.reserve(line_items)
        try:
            with UnitOfWork():
                order = self.factory.build(
                    user_id,
                    [(line.product_id, line.quantity) for line in reservation.lines],
                    products,
                    method,
                )
                shipment = self.tracker.create(order.id)
                order.attach_shipment(shipment.id)

                current_domain.repository_for(Order).add(order)
                current_domain.repository_for(Shipment).add(shipment)

                payment_required = self.branch.requires_payment(method)
        except Exception:
            logger.warning(
                "Checkout rolled back, releasing stock",
                user_id=user_id,
                reservation_id=reservation.reservation_id,
            )
            self.reservations.release(reservation)
            raise

        logger.info(
            "Checkout completed",
            order_id=str(order.id),
            shipment_id=str(shipment.id),
            user_id=user_id,
            total=order.total,
            payment_method=method.value,
        )

        try:
            self.carts.clear_cart(user_id)
        except Exception:
            # The order stands; a stale cart is only an inconvenience
            logger.exception("Cart could not be cleared after checkout", user_id=user_id, order_id=str(order.id))

        return CheckoutResult(order_id=str(order.id), payment_required=payment_required)

    # -------------------------------------------------------------------
    # Payment intent
    # -------------------------------------------------------------------
    def initiate_payment(self, amount, currency: str = "usd") -> str:
        """Create a gateway payment intent and return its client secret."""
        try:
            amount = to_money(amount)
        except ValueError:
            raise ValidationError({"amount": ["Amount must be a number"]}) from None
        if amount <= 0:
            raise ValidationError({"amount": ["Amount must be greater than zero"]})

        try:
            result = get_gateway().create_payment_intent(float(amount), currency.lower())
        except Exception as exc:
            raise PaymentGatewayError(str(exc)) from exc

        if not result.success:
            logger.warning("Payment intent rejected", amount=float(amount), reason=result.failure_reason)
            raise PaymentGatewayError(result.failure_reason or "Payment intent was not created")

        logger.info("Payment intent created", intent_id=result.intent_id, amount=float(amount), currency=currency)
        return result.client_secret
