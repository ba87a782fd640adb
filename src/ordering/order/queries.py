"""Read side for orders: the caller's order history and single-order lookup.

Orders are returned as plain dicts with their line items and shipment
embedded, ready for the API layer to render.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.errors import NotFound
from ordering.order.order import Order
from ordering.shipment.shipment import Shipment


def _shipment_view(shipment_id) -> dict | None:
    if not shipment_id:
        return None
    try:
        shipment = current_domain.repository_for(Shipment).get(str(shipment_id))
    except ObjectNotFoundError:
        return None
    return {
        "id": str(shipment.id),
        "tracking_number": shipment.tracking_number,
        "status": shipment.status,
        "updated_at": shipment.updated_at,
    }


def order_view(order: Order) -> dict:
    return {
        "id": str(order.id),
        "user_id": str(order.user_id),
        "items": [
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "price_at_purchase": item.price_at_purchase,
                "cod_eligible": item.cod_eligible,
            }
            for item in order.items
        ],
        "total": order.total,
        "currency": order.currency,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "shipment": _shipment_view(order.shipment_id),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def list_orders(user_id: str) -> list[dict]:
    """The user's orders, newest first.

    The query is read page by page until the result set's total is reached,
    since a single ``all()`` stops at the provider's default page size.
    """
    repo = current_domain.repository_for(Order)
    query = repo._dao.query.filter(user_id=str(user_id)).order_by("-created_at")

    page = query.all()
    orders = list(page.items)
    while page.items and len(orders) < page.total:
        page = query.offset(len(orders)).all()
        orders.extend(page.items)
    return [order_view(order) for order in orders]


def get_order(order_id: str) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise NotFound("Order", order_id) from None
