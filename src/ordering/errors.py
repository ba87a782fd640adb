"""Error taxonomy for checkout, orders and shipments.

Every failure a caller can observe is a ``CheckoutError`` carrying a stable
``code``, the HTTP status it maps to, and structured details. The API layer
renders them as ``{"error": code, "message": ..., **details}``.
"""


class CheckoutError(Exception):
    """Base exception for all storefront core errors."""

    code = "CheckoutError"
    status_code = 400

    def __init__(self, message: str, **details):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, **self.details}


class EmptyCart(CheckoutError):
    code = "EmptyCart"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Cart is empty")


class InsufficientStock(CheckoutError):
    code = "InsufficientStock"

    def __init__(self, product_id: str, requested: int | None = None, available: int | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(f"Not enough stock for product {product_id}", productId=product_id)


class EmptyOrder(CheckoutError):
    """Raised when an order would be built without line items."""

    code = "EmptyOrder"

    def __init__(self):
        super().__init__("An order needs at least one line item")


class InvalidShipmentTransition(CheckoutError):
    code = "InvalidShipmentTransition"

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move shipment from {from_status} to {to_status}",
            **{"from": from_status, "to": to_status},
        )


class InvalidPaymentTransition(CheckoutError):
    code = "InvalidPaymentTransition"

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move payment from {from_status} to {to_status}",
            **{"from": from_status, "to": to_status},
        )


class UnrecognizedValue(CheckoutError):
    """A closed-enumeration field received a value outside its set."""

    code = "UnrecognizedValue"

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Unrecognized {field}: {value!r}", field=field, value=str(value))


class NotFound(CheckoutError):
    code = "NotFound"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found", entity=entity, id=str(entity_id))


class PaymentGatewayError(CheckoutError):
    code = "PaymentGatewayError"
    status_code = 502

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Payment gateway error: {reason}")


class ConcurrentModification(CheckoutError):
    """Stock moved between validation and commit; retried internally."""

    code = "ConcurrentModification"
    status_code = 409

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Stock for product {product_id} changed during reservation", productId=product_id)


class CheckoutInProgress(CheckoutError):
    """A request with the same idempotency key is still running."""

    code = "CheckoutInProgress"
    status_code = 409

    def __init__(self, idempotency_key: str):
        self.idempotency_key = idempotency_key
        super().__init__("A checkout with this idempotency key is still in progress", idempotencyKey=idempotency_key)
