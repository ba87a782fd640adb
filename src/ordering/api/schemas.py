"""Pydantic request/response schemas for the storefront API.

These are external contracts (anti-corruption layer), separate from internal
Protean commands. Field names are camelCase on the wire and snake_case in
Python.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(ApiModel):
    payment_method: str
    idempotency_key: str | None = None

    model_config = ConfigDict(
        json_schema_extra={"examples": [{"paymentMethod": "cod", "idempotencyKey": "9b2f-checkout-1"}]},
    )


class CheckoutResponse(ApiModel):
    order_id: str
    payment_required: bool
    message: str


class PaymentIntentRequest(ApiModel):
    amount: float
    currency: str = Field(default="usd", min_length=3, max_length=3)


class PaymentIntentResponse(ApiModel):
    client_secret: str


# ---------------------------------------------------------------------------
# Orders and shipments
# ---------------------------------------------------------------------------
class OrderLineItemSchema(ApiModel):
    product_id: str
    quantity: int
    price_at_purchase: float
    cod_eligible: bool


class ShipmentSchema(ApiModel):
    id: str
    tracking_number: str
    status: str


class OrderSchema(ApiModel):
    id: str
    items: list[OrderLineItemSchema]
    total: float
    currency: str
    payment_method: str
    payment_status: str
    shipment: ShipmentSchema | None = None


class TrackingResponse(ApiModel):
    tracking_number: str
    status: str


class UpdateShipmentRequest(ApiModel):
    status: str

    model_config = ConfigDict(json_schema_extra={"examples": [{"status": "In Transit"}]})


class OkResponse(ApiModel):
    ok: bool = True


# ---------------------------------------------------------------------------
# Catalogue and cart
# ---------------------------------------------------------------------------
class ProductSchema(ApiModel):
    id: str
    name: str
    price: float
    stock: int
    cod_available: bool
    is_available: bool


class AddToCartRequest(ApiModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(ApiModel):
    product_id: str
    quantity: int = Field(ge=0)


class RemoveFromCartRequest(ApiModel):
    product_id: str


class CartItemSchema(ApiModel):
    product_id: str
    quantity: int


class CartResponse(ApiModel):
    items: list[CartItemSchema]


# ---------------------------------------------------------------------------
# Payment webhook
# ---------------------------------------------------------------------------
class PaymentWebhookRequest(ApiModel):
    order_id: str
    status: str = Field(pattern="^(succeeded|failed)$")
    failure_reason: str | None = None


class StatusResponse(ApiModel):
    status: str = "ok"
