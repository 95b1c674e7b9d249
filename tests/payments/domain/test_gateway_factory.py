"""Gateway selection from the environment."""

import pytest

from payments.gateway import get_gateway, reset_gateway
from payments.gateway.fake_adapter import DEFAULT_WEBHOOK_SECRET, FakeGateway
from payments.gateway.stripe_adapter import StripeGateway


@pytest.fixture(autouse=True)
def _fresh_factory():
    reset_gateway()
    yield
    reset_gateway()


def test_fake_by_default(monkeypatch):
    monkeypatch.delenv("PAYMENT_GATEWAY", raising=False)
    monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
    gateway = get_gateway()
    assert isinstance(gateway, FakeGateway)
    assert gateway.webhook_secret == DEFAULT_WEBHOOK_SECRET


def test_singleton(monkeypatch):
    monkeypatch.delenv("PAYMENT_GATEWAY", raising=False)
    assert get_gateway() is get_gateway()


def test_stripe_from_environment(monkeypatch):
    monkeypatch.setenv("PAYMENT_GATEWAY", "stripe")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_dummy")
    monkeypatch.setenv("PAYMENT_GATEWAY_TIMEOUT", "3")
    gateway = get_gateway()
    assert isinstance(gateway, StripeGateway)
    assert gateway.webhook_secret == "whsec_dummy"


def test_unknown_adapter(monkeypatch):
    monkeypatch.setenv("PAYMENT_GATEWAY", "carrier-pigeon")
    with pytest.raises(ValueError):
        get_gateway()
