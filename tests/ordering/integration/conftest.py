import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from ordering.api import (
    cart_router,
    checkout_router,
    order_router,
    payment_router,
    product_router,
    register_error_handlers,
)

USER = {"X-User-Id": "user-001"}
ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}


@pytest.fixture()
def client(ordering_domain):
    app = FastAPI()

    @app.middleware("http")
    async def domain_context(request: Request, call_next):
        with ordering_domain.domain_context():
            return await call_next(request)

    app.include_router(product_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(payment_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def products(catalogue):
    catalogue.add_product("Mug", "12.50", stock=5, product_id="mug")
    catalogue.add_product("Tee", "20.00", stock=2, cod_available=False, product_id="tee")
    return catalogue


@pytest.fixture()
def add_to_cart(client):
    def _add(product_id, quantity=1, headers=USER):
        response = client.post("/cart/add", json={"productId": product_id, "quantity": quantity}, headers=headers)
        assert response.status_code == 200
        return response

    return _add


@pytest.fixture()
def place_order(client, add_to_cart):
    """Check out ``(product_id, quantity)`` lines and return the order id."""

    def _place(*lines, payment_method="card", headers=USER):
        for product_id, quantity in lines:
            add_to_cart(product_id, quantity, headers=headers)
        response = client.post("/checkout", json={"paymentMethod": payment_method}, headers=headers)
        assert response.status_code == 201
        return response.json()["orderId"]

    return _place
