"""Configurable fake payment gateway for development and testing.

Keeps payment intents in memory and signs/verifies webhooks exactly like
Stripe does (``t=<timestamp>,v1=<hmac-sha256 of "<timestamp>.<payload>">``),
so the whole reconciliation flow can be exercised without credentials.
Tests drive intents to a final state with ``succeed``/``fail`` and build
valid signature headers with ``sign``.
"""

import hashlib
import hmac
import json
import time
from dataclasses import replace
from uuid import uuid4

from payments.gateway.port import (
    GatewayError,
    GatewayTimeoutError,
    PaymentGateway,
    PaymentIntent,
    SignatureVerificationError,
    WebhookEvent,
)

DEFAULT_WEBHOOK_SECRET = "whsec_test_secret"
SIGNATURE_TOLERANCE = 300  # seconds


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = DEFAULT_WEBHOOK_SECRET) -> None:
        self.webhook_secret = webhook_secret
        self.intents: dict[str, PaymentIntent] = {}
        self.should_time_out: bool = False
        self.calls: list[dict] = []

    def configure(self, should_time_out: bool = False) -> None:
        """Make every subsequent call fail as an unreachable processor."""
        self.should_time_out = should_time_out

    def _check_reachable(self) -> None:
        if self.should_time_out:
            raise GatewayTimeoutError("Payment processor timed out")

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
    def create_payment_intent(self, amount, currency, metadata, description=None) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_payment_intent",
                "amount": amount,
                "currency": currency,
                "metadata": dict(metadata),
                "description": description,
            }
        )
        self._check_reachable()

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            created=int(time.time()),
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        return intent

    def retrieve_payment_intent(self, intent_id) -> PaymentIntent:
        self.calls.append({"method": "retrieve_payment_intent", "intent_id": intent_id})
        self._check_reachable()

        intent = self.intents.get(intent_id)
        if intent is None:
            raise GatewayError(f"No such payment_intent: '{intent_id}'")
        return intent

    def construct_webhook_event(self, payload, signature) -> WebhookEvent:
        self.calls.append({"method": "construct_webhook_event"})
        self.verify_signature(payload, signature)

        try:
            body = json.loads(payload)
            return WebhookEvent(
                id=body["id"],
                type=body["type"],
                data=body.get("data", {}).get("object", {}),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise SignatureVerificationError("Invalid webhook payload") from exc

    # -------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------
    def succeed(self, intent_id: str, receipt_email: str | None = None) -> PaymentIntent:
        intent = replace(self.intents[intent_id], status="succeeded", receipt_email=receipt_email)
        self.intents[intent_id] = intent
        return intent

    def fail(self, intent_id: str) -> PaymentIntent:
        intent = replace(self.intents[intent_id], status="requires_payment_method")
        self.intents[intent_id] = intent
        return intent

    def sign(self, payload: bytes, timestamp: int | None = None) -> str:
        """Build a valid signature header for ``payload``."""
        timestamp = int(time.time()) if timestamp is None else timestamp
        return f"t={timestamp},v1={self._digest(payload, timestamp)}"

    def verify_signature(self, payload: bytes, signature: str | None) -> None:
        if not signature:
            raise SignatureVerificationError("Missing signature header")

        parts = dict(part.split("=", 1) for part in signature.split(",") if "=" in part)
        try:
            timestamp = int(parts["t"])
        except (KeyError, ValueError) as exc:
            raise SignatureVerificationError("Malformed signature header") from exc

        if not hmac.compare_digest(parts.get("v1", ""), self._digest(payload, timestamp)):
            raise SignatureVerificationError("Signature does not match payload")
        if abs(time.time() - timestamp) > SIGNATURE_TOLERANCE:
            raise SignatureVerificationError("Signature timestamp outside tolerance")

    def _digest(self, payload: bytes, timestamp: int) -> str:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        signed = f"{timestamp}.".encode() + payload
        return hmac.new(self.webhook_secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
