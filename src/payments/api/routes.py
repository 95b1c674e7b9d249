"""FastAPI routes for payments — processor intents and the webhook."""

from fastapi import APIRouter, Depends, Header, Request

from ordering.api.auth import current_caller
from ordering.api.serializers import order_to_dict
from ordering.caller import Caller
from payments.api.schemas import ConfirmPaymentRequest, CreatePaymentIntentRequest
from payments.reconciliation import (
    confirm_client_payment,
    create_payment_intent,
    get_payment_intent_status,
    handle_webhook,
)

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/create-payment-intent")
async def create_intent(body: CreatePaymentIntentRequest, caller: Caller = Depends(current_caller)) -> dict:
    return {"success": True, **create_payment_intent(body.order_id, caller)}


@payment_router.post("/confirm-payment")
async def confirm_payment(body: ConfirmPaymentRequest, caller: Caller = Depends(current_caller)) -> dict:
    order = confirm_client_payment(body.payment_intent_id, body.order_id, caller)
    return {"success": True, "message": "Payment confirmed successfully", "data": order_to_dict(order)}


@payment_router.get("/intent/{payment_intent_id}")
async def intent_status(payment_intent_id: str, caller: Caller = Depends(current_caller)) -> dict:
    return {"success": True, "data": get_payment_intent_status(payment_intent_id)}


@payment_router.post("/webhook")
async def webhook(request: Request, stripe_signature: str | None = Header(default=None)) -> dict:
    """Processor notifications. The signature covers the raw body, so it is read untouched."""
    payload = await request.body()
    return handle_webhook(payload, stripe_signature)
