"""Pydantic request schemas for the Payments API."""

from pydantic import BaseModel, Field


class CreatePaymentIntentRequest(BaseModel):
    order_id: str = Field(min_length=1)


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str = Field(min_length=1)
    order_id: str = Field(min_length=1)

    model_config = {
        "json_schema_extra": {"examples": [{"payment_intent_id": "pi_3Nx...", "order_id": "ord-001"}]}
    }
