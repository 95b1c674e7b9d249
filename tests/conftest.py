import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config environment before any domain module is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def _ordering_domain(request):
    """Initialize the ordering domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from ordering.domain import ordering
    from ordering.utils.db import configure_database

    configure_database(ordering)
    ordering.init()
    return ordering


@pytest.fixture(scope="session", autouse=True)
def setup_db(_ordering_domain):
    from ordering.utils.db import drop_db, setup_db

    setup_db(_ordering_domain)

    yield

    drop_db(_ordering_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_ordering_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _ordering_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture(autouse=True)
def gateway():
    """A fresh in-memory payment processor for every test."""
    from payments.gateway import reset_gateway, set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)

    yield fake

    reset_gateway()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


@pytest.fixture()
def make_product():
    from protean import current_domain

    from ordering.inventory.product import Product

    def _make(name="Widget", price=10.0, stock=10, image="widget.png"):
        product = Product.create(name=name, price=price, stock=stock, image=image)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def add_to_cart():
    from ordering.cart.items import AddCartItem
    from ordering.concurrency import process

    def _add(user_id, product, quantity=1):
        return process(AddCartItem(user_id=user_id, product_id=str(product.id), quantity=quantity))

    return _add


@pytest.fixture()
def place_order():
    import json

    from ordering.concurrency import process
    from ordering.order.checkout import PlaceOrder

    def _place(user_id, payment_method="stripe", address=None):
        return process(
            PlaceOrder(
                user_id=user_id,
                shipping_address=json.dumps(address or ADDRESS),
                payment_method=payment_method,
            )
        )

    return _place


@pytest.fixture()
def placed_order(make_product, add_to_cart, place_order):
    """An unpaid order for user-1: 2 x 10.00 + 1 x 30.00."""
    from protean import current_domain

    from ordering.order.order import Order

    widget = make_product(name="Widget", price=10.0, stock=5)
    gadget = make_product(name="Gadget", price=30.0, stock=3)
    add_to_cart("user-1", widget, 2)
    add_to_cart("user-1", gadget, 1)
    order_id = place_order("user-1")
    return current_domain.repository_for(Order).get(order_id)
