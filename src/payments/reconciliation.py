"""Payment reconciliation — drives orders from unpaid to paid.

A payment can be confirmed three ways, possibly all for the same order and
in any order:

1. The client reports a succeeded payment intent (``confirm_client_payment``).
2. The processor posts a signed webhook (``handle_webhook``).
3. An admin records a payment by hand (``RecordOrderPayment`` via the API).

All of them end in the same ``RecordOrderPayment`` command, so the first
one to commit marks the order paid and the rest are no-ops. Processor calls
happen here, outside any unit of work; only the order update runs inside one.
"""

from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.caller import Caller
from ordering.concurrency import process
from ordering.errors import NotFoundError, PaymentVerificationError, UpstreamTimeoutError
from ordering.order.order import Order, PaymentSource
from ordering.order.payment import RecordOrderPayment, RecordPaymentFailure
from payments.gateway import get_gateway
from payments.gateway.port import GatewayError, GatewayTimeoutError, SignatureVerificationError

logger = structlog.get_logger(__name__)

CURRENCY = "usd"
PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


@contextmanager
def gateway_errors(operation: str):
    """Translate gateway failures into application errors."""
    try:
        yield
    except GatewayTimeoutError as exc:
        logger.warning("gateway_timeout", operation=operation, error=str(exc))
        raise UpstreamTimeoutError("Payment processor did not respond, please retry") from exc
    except GatewayError as exc:
        logger.warning("gateway_error", operation=operation, error=str(exc))
        raise PaymentVerificationError(str(exc)) from exc


def _owned_order(order_id, user_id) -> Order:
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFoundError("Order not found") from exc
    if not order.is_owned_by(user_id):
        raise NotFoundError("Order not found")
    return order


def create_payment_intent(order_id, caller: Caller) -> dict:
    """Open a processor payment intent for the caller's unpaid order."""
    order = _owned_order(order_id, caller.user_id)
    if order.is_paid:
        raise ValidationError({"order": ["Order is already paid"]})

    with gateway_errors("create_payment_intent"):
        intent = get_gateway().create_payment_intent(
            amount=round(order.total_price * 100),
            currency=CURRENCY,
            metadata={"order_id": str(order.id), "user_id": str(caller.user_id)},
            description=f"Payment for order #{order.id}",
        )

    logger.info("payment_intent_created", order_id=str(order.id), payment_intent_id=intent.id, amount=intent.amount)
    return {"client_secret": intent.client_secret, "payment_intent_id": intent.id}


def confirm_client_payment(intent_id, order_id, caller: Caller) -> Order:
    """Mark the order paid after checking the intent with the processor."""
    with gateway_errors("retrieve_payment_intent"):
        intent = get_gateway().retrieve_payment_intent(intent_id)

    if not intent.succeeded:
        raise PaymentVerificationError(f"Payment not succeeded. Status: {intent.status}")
    if intent.order_id and intent.order_id != str(order_id):
        logger.warning(
            "payment_intent_order_mismatch",
            payment_intent_id=intent.id,
            intent_order_id=intent.order_id,
            order_id=str(order_id),
        )
        raise PaymentVerificationError("Payment intent does not belong to this order")

    process(
        RecordOrderPayment(
            order_id=str(order_id),
            transaction_id=intent.id,
            status=intent.status,
            payer_email=intent.receipt_email,
            source=PaymentSource.CLIENT.value,
            owner_id=str(caller.user_id),
        )
    )
    return current_domain.repository_for(Order).get(order_id)


def get_payment_intent_status(intent_id) -> dict:
    with gateway_errors("retrieve_payment_intent"):
        intent = get_gateway().retrieve_payment_intent(intent_id)
    return {
        "id": intent.id,
        "status": intent.status,
        "amount": intent.amount,
        "currency": intent.currency,
        "created": intent.created,
    }


def handle_webhook(payload: bytes, signature: str | None) -> dict:
    """Verify and apply a processor notification.

    Anything that cannot be authenticated is rejected before it can touch
    an order. Authentic events about orders we do not know are acknowledged
    so the processor stops redelivering them.
    """
    try:
        event = get_gateway().construct_webhook_event(payload, signature)
    except SignatureVerificationError as exc:
        logger.warning("webhook_verification_failed", error=str(exc))
        raise PaymentVerificationError(f"Webhook Error: {exc}") from exc

    intent = event.data
    order_id = (intent.get("metadata") or {}).get("order_id")

    if event.type not in (PAYMENT_SUCCEEDED, PAYMENT_FAILED):
        logger.info("webhook_ignored", event_id=event.id, event_type=event.type)
        return {"received": True}

    if not order_id:
        logger.warning("webhook_without_order", event_id=event.id, event_type=event.type)
        return {"received": True}

    if event.type == PAYMENT_SUCCEEDED and not intent.get("id"):
        logger.warning("webhook_without_intent_id", event_id=event.id, order_id=order_id)
        return {"received": True}

    try:
        if event.type == PAYMENT_SUCCEEDED:
            process(
                RecordOrderPayment(
                    order_id=order_id,
                    transaction_id=intent.get("id"),
                    status=intent.get("status"),
                    payer_email=intent.get("receipt_email"),
                    source=PaymentSource.WEBHOOK.value,
                )
            )
        else:
            process(
                RecordPaymentFailure(
                    order_id=order_id,
                    transaction_id=intent.get("id"),
                    reason=(intent.get("last_payment_error") or {}).get("message"),
                )
            )
    except NotFoundError:
        logger.warning("webhook_unknown_order", event_id=event.id, event_type=event.type, order_id=order_id)

    return {"received": True}
