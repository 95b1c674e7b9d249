"""Pydantic request schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Field names follow the public JSON API.
"""

from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str | None = None
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)

    model_config = {"json_schema_extra": {"examples": [{"product_id": "prod-001", "quantity": 2}]}}


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    shipping_address: ShippingAddressSchema
    payment_method: Literal["stripe", "paypal"]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "street": "1 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zip_code": "62701",
                        "country": "US",
                    },
                    "payment_method": "stripe",
                }
            ]
        }
    }


class RecordPaymentRequest(BaseModel):
    """Payment details entered by an admin for a manual payment."""

    id: str = Field(min_length=1)
    status: str | None = None
    update_time: str | None = None
    email_address: str | None = None
