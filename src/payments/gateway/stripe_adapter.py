"""Stripe payment gateway adapter.

Wraps the stripe-python ``StripeClient``. Every request is bounded by the
configured timeout; connection problems surface as GatewayTimeoutError so
callers can tell "retry later" apart from a definitive rejection.
"""

import json

import stripe
import structlog

from payments.gateway.port import (
    GatewayError,
    GatewayTimeoutError,
    PaymentGateway,
    PaymentIntent,
    SignatureVerificationError,
    WebhookEvent,
)

logger = structlog.get_logger(__name__)


def _to_intent(obj) -> PaymentIntent:
    return PaymentIntent(
        id=obj.id,
        status=obj.status,
        amount=obj.amount,
        currency=obj.currency,
        created=obj.created,
        client_secret=obj.client_secret,
        metadata=dict(obj.metadata or {}),
        receipt_email=obj.receipt_email,
    )


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str, timeout: float = 10.0) -> None:
        self.webhook_secret = webhook_secret
        self.client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
        )

    def create_payment_intent(self, amount, currency, metadata, description=None) -> PaymentIntent:
        params = {
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
            "payment_method_types": ["card"],
        }
        if description:
            params["description"] = description

        try:
            return _to_intent(self.client.payment_intents.create(params=params))
        except stripe.APIConnectionError as exc:
            logger.warning("stripe_unreachable", operation="create_payment_intent", error=str(exc))
            raise GatewayTimeoutError("Payment processor timed out") from exc
        except stripe.StripeError as exc:
            raise GatewayError(exc.user_message or str(exc)) from exc

    def retrieve_payment_intent(self, intent_id) -> PaymentIntent:
        try:
            return _to_intent(self.client.payment_intents.retrieve(intent_id))
        except stripe.APIConnectionError as exc:
            logger.warning("stripe_unreachable", operation="retrieve_payment_intent", error=str(exc))
            raise GatewayTimeoutError("Payment processor timed out") from exc
        except stripe.StripeError as exc:
            raise GatewayError(exc.user_message or str(exc)) from exc

    def construct_webhook_event(self, payload, signature) -> WebhookEvent:
        if not signature:
            raise SignatureVerificationError("Missing signature header")
        try:
            event = self.client.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureVerificationError(str(exc)) from exc
        except ValueError as exc:
            raise SignatureVerificationError("Invalid webhook payload") from exc

        body = json.loads(payload)
        return WebhookEvent(
            id=event.id,
            type=event.type,
            data=body.get("data", {}).get("object", {}),
        )
