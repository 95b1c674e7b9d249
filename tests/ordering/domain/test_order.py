"""Order aggregate: placement, payment and delivery transitions."""

import json

import pytest
from protean.exceptions import ValidationError

from ordering.order.events import OrderDelivered, OrderPaid, OrderPaymentFailed, OrderPlaced
from ordering.order.order import Order, OrderStatus

ADDRESS = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "US"}


def _items():
    return [
        {"product_id": "prod-1", "name": "Widget", "quantity": 2, "unit_price": 10.0, "image": "w.png"},
        {"product_id": "prod-2", "name": "Gadget", "quantity": 1, "unit_price": 30.0, "image": "g.png"},
    ]


def _order(**overrides):
    kwargs = {
        "user_id": "user-1",
        "items_data": _items(),
        "shipping_address": ADDRESS,
        "payment_method": "stripe",
    }
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestPlace:
    def test_pricing_derived_from_items(self):
        order = _order()
        assert order.items_price == 50.0
        assert order.tax_price == 5.0
        assert order.shipping_price == 10.0
        assert order.total_price == 65.0

    def test_new_order_is_unpaid_and_pending(self):
        order = _order()
        assert order.is_paid is False
        assert order.is_delivered is False
        assert order.status == OrderStatus.PENDING.value

    def test_items_and_address_snapshotted(self):
        order = _order()
        assert [i.name for i in order.items] == ["Widget", "Gadget"]
        assert order.shipping_address.zip_code == "62701"

    def test_place_raises_event(self):
        order = _order()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.total_price == 65.0
        assert len(json.loads(event.items)) == 2

    def test_order_needs_items(self):
        with pytest.raises(ValidationError):
            _order(items_data=[])

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            _order(payment_method="cash")


class TestMarkPaid:
    def test_first_confirmation_applies(self):
        order = _order()
        assert order.mark_paid("pi_1", status="succeeded", payer_email="a@b.c", source="client") is True
        assert order.is_paid is True
        assert order.paid_at is not None
        assert order.payment_result.transaction_id == "pi_1"
        assert order.status == OrderStatus.PROCESSING.value

    def test_confirmation_raises_event(self):
        order = _order()
        order.mark_paid("pi_1", source="webhook")
        event = order._events[-1]
        assert isinstance(event, OrderPaid)
        assert event.source == "webhook"
        assert event.amount == order.total_price

    def test_second_confirmation_is_noop(self):
        order = _order()
        order.mark_paid("pi_1", status="succeeded")
        paid_at = order.paid_at
        events_before = len(order._events)

        assert order.mark_paid("pi_2", status="succeeded") is False
        assert order.paid_at == paid_at
        assert order.payment_result.transaction_id == "pi_1"
        assert len(order._events) == events_before

    def test_update_time_defaults_to_now(self):
        order = _order()
        order.mark_paid("pi_1")
        assert order.payment_result.update_time


class TestPaymentFailure:
    def test_failure_recorded_separately(self):
        order = _order()
        order.record_payment_failure("pi_1", "card_declined")
        assert order.is_paid is False
        assert order.payment_failure.reason == "card_declined"
        assert order.payment_result is None
        assert isinstance(order._events[-1], OrderPaymentFailed)

    def test_failure_after_payment_keeps_order_paid(self):
        order = _order()
        order.mark_paid("pi_1", status="succeeded")
        order.record_payment_failure("pi_2", "card_declined")
        assert order.is_paid is True
        assert order.payment_result.transaction_id == "pi_1"


class TestMarkDelivered:
    def test_deliver(self):
        order = _order()
        assert order.mark_delivered() is True
        assert order.is_delivered is True
        assert order.delivered_at is not None
        assert order.status == OrderStatus.DELIVERED.value
        assert isinstance(order._events[-1], OrderDelivered)

    def test_repeat_delivery_is_harmless(self):
        order = _order()
        order.mark_delivered()
        delivered_at = order.delivered_at
        assert order.mark_delivered() is False
        assert order.delivered_at == delivered_at


class TestOwnership:
    def test_owner(self):
        order = _order()
        assert order.is_owned_by("user-1")
        assert not order.is_owned_by("user-2")
