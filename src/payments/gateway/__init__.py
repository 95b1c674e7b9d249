"""Payment gateway factory.

``PAYMENT_GATEWAY`` selects the adapter: ``fake`` (default) for development
and tests, ``stripe`` for production, which also needs ``STRIPE_SECRET_KEY``
and ``STRIPE_WEBHOOK_SECRET``. ``PAYMENT_GATEWAY_TIMEOUT`` bounds every
processor call (seconds, default 10).
"""

import os

from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    adapter = os.environ.get("PAYMENT_GATEWAY", "fake")
    if adapter == "fake":
        from payments.gateway.fake_adapter import DEFAULT_WEBHOOK_SECRET, FakeGateway

        return FakeGateway(webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET", DEFAULT_WEBHOOK_SECRET))
    if adapter == "stripe":
        from payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=os.environ["STRIPE_SECRET_KEY"],
            webhook_secret=os.environ["STRIPE_WEBHOOK_SECRET"],
            timeout=float(os.environ.get("PAYMENT_GATEWAY_TIMEOUT", "10")),
        )
    raise ValueError(f"Unknown payment gateway: {adapter}")


def get_gateway() -> PaymentGateway:
    """Return the configured payment gateway (singleton)."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
