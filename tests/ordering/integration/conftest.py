import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ordering.api import cart_router, order_router, register_error_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(order_router)
    register_error_handlers(app)
    return TestClient(app)
