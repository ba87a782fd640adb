"""FastAPI routes for the storefront — catalogue, cart, checkout, orders, payments.

Caller identity is resolved upstream (the bearer token is verified before the
request reaches this service) and arrives as the ``X-User-Id`` header.
Operator endpoints additionally require ``X-User-Role: admin``.
"""

import json

from fastapi import APIRouter, Depends, Header, HTTPException

from ordering.api.schemas import (
    AddToCartRequest,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    OkResponse,
    OrderSchema,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentWebhookRequest,
    ProductSchema,
    RemoveFromCartRequest,
    StatusResponse,
    TrackingResponse,
    UpdateCartItemRequest,
    UpdateShipmentRequest,
)
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartItem, process_cart_command
from ordering.cart.snapshot import CartSnapshotProvider
from ordering.catalogue import get_catalogue
from ordering.checkout.orchestrator import CheckoutOrchestrator
from ordering.domain import ordering
from ordering.order.payment import mark_failed, mark_paid
from ordering.errors import NotFound
from ordering.order.queries import get_order, list_orders, order_view
from ordering.payment.gateway import get_gateway
from ordering.shipment.tracking import ShipmentTracker


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------
def current_user(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


def require_admin(
    user_id: str = Depends(current_user),
    x_user_role: str = Header(default=""),
) -> str:
    if x_user_role.lower() != "admin":
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return user_id


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("", response_model=list[ProductSchema])
async def list_products() -> list[ProductSchema]:
    return [ProductSchema(**product.to_dict()) for product in get_catalogue().list_products()]


@product_router.get("/{product_id}", response_model=ProductSchema)
async def get_product(product_id: str) -> ProductSchema:
    return ProductSchema(**get_catalogue().get_product(product_id).to_dict())


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


def _cart_response(user_id: str) -> CartResponse:
    return CartResponse(items=CartSnapshotProvider().get_cart(user_id))


@cart_router.get("", response_model=CartResponse)
async def get_cart(user_id: str = Depends(current_user)) -> CartResponse:
    return _cart_response(user_id)


@cart_router.post("/add", response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest, user_id: str = Depends(current_user)) -> CartResponse:
    # Unknown products are rejected here rather than at checkout
    get_catalogue().get_product(body.product_id)
    process_cart_command(AddToCart(user_id=user_id, product_id=body.product_id, quantity=body.quantity))
    return _cart_response(user_id)


@cart_router.post("/update", response_model=CartResponse)
async def update_cart_item(body: UpdateCartItemRequest, user_id: str = Depends(current_user)) -> CartResponse:
    process_cart_command(UpdateCartItem(user_id=user_id, product_id=body.product_id, quantity=body.quantity))
    return _cart_response(user_id)


@cart_router.post("/remove", response_model=CartResponse)
async def remove_from_cart(body: RemoveFromCartRequest, user_id: str = Depends(current_user)) -> CartResponse:
    process_cart_command(RemoveFromCart(user_id=user_id, product_id=body.product_id))
    return _cart_response(user_id)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
def checkout(
    body: CheckoutRequest,
    user_id: str = Depends(current_user),
    idempotency_key: str | None = Header(default=None),
) -> CheckoutResponse:
    # Runs in the threadpool: checkout can block on stock retries and on
    # duplicate idempotency keys.
    with ordering.domain_context():
        result = CheckoutOrchestrator().checkout(
            user_id,
            body.payment_method,
            idempotency_key=idempotency_key or body.idempotency_key,
        )
    return CheckoutResponse(
        order_id=result.order_id,
        payment_required=result.payment_required,
        message=result.message,
    )


@checkout_router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentRequest,
    user_id: str = Depends(current_user),  # noqa: ARG001
) -> PaymentIntentResponse:
    client_secret = CheckoutOrchestrator().initiate_payment(body.amount, body.currency)
    return PaymentIntentResponse(client_secret=client_secret)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderSchema])
async def get_orders(user_id: str = Depends(current_user)) -> list[OrderSchema]:
    return [OrderSchema(**order) for order in list_orders(user_id)]


def _owned_order(order_id: str, user_id: str):
    order = get_order(order_id)
    if str(order.user_id) != user_id:
        # Other users' orders are indistinguishable from missing ones
        raise NotFound("Order", order_id)
    return order


@order_router.get("/{order_id}", response_model=OrderSchema)
async def get_order_detail(order_id: str, user_id: str = Depends(current_user)) -> OrderSchema:
    return OrderSchema(**order_view(_owned_order(order_id, user_id)))


@order_router.get("/{order_id}/tracking", response_model=TrackingResponse)
async def get_tracking(order_id: str, user_id: str = Depends(current_user)) -> TrackingResponse:
    _owned_order(order_id, user_id)
    return TrackingResponse(**ShipmentTracker().get_tracking(order_id))


@order_router.post("/{order_id}/shipment", response_model=OkResponse)
async def update_shipment(
    order_id: str,
    body: UpdateShipmentRequest,
    user_id: str = Depends(require_admin),  # noqa: ARG001
) -> OkResponse:
    ShipmentTracker().advance_for_order(order_id, body.status)
    return OkResponse()


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=StatusResponse)
async def payment_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(default=""),
) -> StatusResponse:
    """Apply a gateway payment outcome to its order."""
    gateway = get_gateway()
    if not gateway.verify_webhook_signature(json.dumps(body.model_dump()), x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    if body.status == "succeeded":
        mark_paid(body.order_id)
    else:
        mark_failed(body.order_id, reason=body.failure_reason)
    return StatusResponse(status="processed")
