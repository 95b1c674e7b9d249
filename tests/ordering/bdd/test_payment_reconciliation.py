"""BDD scenarios for payment reconciliation."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

from ordering.caller import Caller
from ordering.errors import PaymentVerificationError
from ordering.inventory.product import Product
from ordering.order.order import Order
from payments.reconciliation import confirm_client_payment, create_payment_intent, handle_webhook

scenarios("features/payment_reconciliation.feature")


@pytest.fixture()
def ctx():
    return {"products": {}, "paid_snapshots": []}


def _order(ctx):
    return current_domain.repository_for(Order).get(ctx["order_id"])


def _post_webhook(gateway, ctx, event_type, signature=None, **extra):
    payload = json.dumps(
        {
            "id": f"evt_{len(ctx['paid_snapshots'])}",
            "type": event_type,
            "data": {
                "object": {
                    "id": ctx.get("intent_id", "pi_unknown"),
                    "status": "succeeded",
                    "metadata": {"order_id": ctx["order_id"]},
                    **extra,
                }
            },
        }
    ).encode()
    return handle_webhook(payload, signature or gateway.sign(payload))


def _snapshot(ctx):
    order = _order(ctx)
    if order.is_paid:
        ctx["paid_snapshots"].append((order.paid_at, order.payment_result.transaction_id, order._version))


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:f} with {stock:d} in stock'))
def product(make_product, ctx, name, price, stock):
    ctx["products"][name] = make_product(name=name, price=price, stock=stock)


@given(parsers.cfparse('"{user_id}" has {qty_a:d} "{name_a}" and {qty_b:d} "{name_b}" in the cart'))
def cart_with_items(add_to_cart, ctx, user_id, qty_a, name_a, qty_b, name_b):
    add_to_cart(user_id, ctx["products"][name_a], qty_a)
    add_to_cart(user_id, ctx["products"][name_b], qty_b)


@given(parsers.cfparse('"{user_id}" checks out'))
def checks_out(place_order, ctx, user_id):
    ctx["order_id"] = place_order(user_id)
    ctx["caller"] = Caller(user_id=user_id)


@given("the processor reports the payment succeeded")
def payment_succeeded(gateway, ctx):
    intent = create_payment_intent(ctx["order_id"], ctx["caller"])
    ctx["intent_id"] = intent["payment_intent_id"]
    gateway.succeed(ctx["intent_id"])


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the client confirms the payment")
def client_confirms(ctx):
    confirm_client_payment(ctx["intent_id"], ctx["order_id"], ctx["caller"])
    _snapshot(ctx)


@when("the processor webhook arrives")
def webhook_arrives(gateway, ctx):
    _post_webhook(gateway, ctx, "payment_intent.succeeded")
    _snapshot(ctx)


@when("a webhook arrives with a forged signature")
def forged_webhook(gateway, ctx):
    try:
        _post_webhook(gateway, ctx, "payment_intent.succeeded", signature="t=1,v1=forged")
    except PaymentVerificationError as exc:
        ctx["error"] = exc


@when("the processor reports a declined card")
def declined_card(gateway, ctx):
    _post_webhook(
        gateway,
        ctx,
        "payment_intent.payment_failed",
        last_payment_error={"message": "Your card was declined."},
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order items price is {amount:f}"))
def items_price(ctx, amount):
    assert _order(ctx).items_price == amount


@then(parsers.cfparse("the order tax is {amount:f}"))
def tax_price(ctx, amount):
    assert _order(ctx).tax_price == amount


@then(parsers.cfparse("the order shipping is {amount:f}"))
def shipping_price(ctx, amount):
    assert _order(ctx).shipping_price == amount


@then(parsers.cfparse("the order total is {amount:f}"))
def total_price(ctx, amount):
    assert _order(ctx).total_price == amount


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def product_stock(ctx, name, stock):
    assert current_domain.repository_for(Product).get(ctx["products"][name].id).stock == stock


@then("the order is paid once")
def paid_once(ctx):
    assert _order(ctx).is_paid is True
    assert len(set(ctx["paid_snapshots"])) == 1


@then("the webhook is rejected")
def webhook_rejected(ctx):
    assert isinstance(ctx.get("error"), PaymentVerificationError)


@then("the order is not paid")
def not_paid(ctx):
    assert _order(ctx).is_paid is False


@then(parsers.cfparse('the order records the failure "{reason}"'))
def failure_recorded(ctx, reason):
    assert _order(ctx).payment_failure.reason == reason
