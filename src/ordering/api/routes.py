"""FastAPI routes for the Ordering domain — cart and orders."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from ordering.api.auth import current_caller, require_admin
from ordering.api.schemas import (
    AddCartItemRequest,
    PlaceOrderRequest,
    RecordPaymentRequest,
    UpdateCartItemRequest,
)
from ordering.api.serializers import cart_to_dict, order_to_dict
from ordering.caller import Caller
from ordering.cart.items import AddCartItem, RemoveCartItem, UpdateCartItem
from ordering.cart.management import ClearCart, cart_for
from ordering.concurrency import process
from ordering.order.checkout import PlaceOrder
from ordering.order.delivery import MarkOrderDelivered
from ordering.order.order import Order, PaymentSource
from ordering.order.payment import RecordOrderPayment
from ordering.order.queries import get_order_for, list_orders_for


def _cart_payload(user_id) -> dict:
    return {"success": True, "data": cart_to_dict(cart_for(user_id), user_id=user_id)}


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def get_cart(caller: Caller = Depends(current_caller)) -> dict:
    return _cart_payload(caller.user_id)


@cart_router.post("/items")
async def add_cart_item(body: AddCartItemRequest, caller: Caller = Depends(current_caller)) -> dict:
    process(AddCartItem(user_id=caller.user_id, product_id=body.product_id, quantity=body.quantity))
    return _cart_payload(caller.user_id)


@cart_router.put("/items/{item_id}")
async def update_cart_item(
    item_id: str, body: UpdateCartItemRequest, caller: Caller = Depends(current_caller)
) -> dict:
    process(UpdateCartItem(user_id=caller.user_id, item_id=item_id, quantity=body.quantity))
    return _cart_payload(caller.user_id)


@cart_router.delete("/items/{item_id}")
async def remove_cart_item(item_id: str, caller: Caller = Depends(current_caller)) -> dict:
    process(RemoveCartItem(user_id=caller.user_id, item_id=item_id))
    return _cart_payload(caller.user_id)


@cart_router.delete("")
async def clear_cart(caller: Caller = Depends(current_caller)) -> dict:
    process(ClearCart(user_id=caller.user_id))
    return _cart_payload(caller.user_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def place_order(body: PlaceOrderRequest, caller: Caller = Depends(current_caller)) -> dict:
    order_id = process(
        PlaceOrder(
            user_id=caller.user_id,
            shipping_address=json.dumps(body.shipping_address.model_dump()),
            payment_method=body.payment_method,
        )
    )
    order = current_domain.repository_for(Order).get(order_id)
    return {"success": True, "data": order_to_dict(order)}


@order_router.get("")
async def list_my_orders(caller: Caller = Depends(current_caller)) -> dict:
    orders = list_orders_for(caller.user_id)
    return {"success": True, "count": len(orders), "data": [order_to_dict(o) for o in orders]}


@order_router.get("/{order_id}")
async def get_order(order_id: str, caller: Caller = Depends(current_caller)) -> dict:
    return {"success": True, "data": order_to_dict(get_order_for(order_id, caller))}


@order_router.put("/{order_id}/pay")
async def record_payment(order_id: str, body: RecordPaymentRequest, admin: Caller = Depends(require_admin)) -> dict:
    process(
        RecordOrderPayment(
            order_id=order_id,
            transaction_id=body.id,
            status=body.status,
            update_time=body.update_time,
            payer_email=body.email_address,
            source=PaymentSource.MANUAL.value,
        )
    )
    return {"success": True, "data": order_to_dict(get_order_for(order_id, admin))}


@order_router.put("/{order_id}/deliver")
async def mark_delivered(order_id: str, admin: Caller = Depends(require_admin)) -> dict:
    process(MarkOrderDelivered(order_id=order_id))
    return {"success": True, "data": order_to_dict(get_order_for(order_id, admin))}
