import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ordering.api import order_router, register_error_handlers
from payments.api import payment_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(payment_router)
    register_error_handlers(app)
    return TestClient(app)
