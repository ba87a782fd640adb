import pytest
from ordering.cart.items import AddToCart, process_cart_command
from ordering.catalogue import reset_catalogue, set_catalogue
from ordering.catalogue.memory_adapter import InMemoryCatalogue
from ordering.checkout.idempotency import reset_idempotency_store
from ordering.inventory import reset_stock_store
from ordering.payment.gateway import reset_gateway, set_gateway
from ordering.payment.gateway.fake_adapter import FakeGateway


@pytest.fixture(scope="session")
def ordering_domain():
    """Initialize the ordering domain once per session."""
    from ordering.domain import ordering

    ordering.init()
    return ordering


@pytest.fixture(autouse=True)
def run_around_tests(ordering_domain):
    """Push domain context before each test, cleanup after."""
    ctx = ordering_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()

    reset_catalogue()
    reset_stock_store()
    reset_gateway()
    reset_idempotency_store()


@pytest.fixture()
def catalogue():
    catalogue = InMemoryCatalogue()
    set_catalogue(catalogue)
    return catalogue


@pytest.fixture()
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def fill_cart():
    """Put ``(product_id, quantity)`` pairs into a user's cart."""

    def _fill(user_id, *lines):
        for product_id, quantity in lines:
            process_cart_command(AddToCart(user_id=user_id, product_id=product_id, quantity=quantity))

    return _fill
