"""Cart aggregate behavior."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from ordering.cart.cart import CART_TTL, Cart
from ordering.cart.events import CartCleared, CartItemAdded, CartItemQuantityUpdated, CartItemRemoved
from ordering.errors import NotFoundError


def _cart():
    return Cart.create(user_id="user-1")


class TestCartCreation:
    def test_new_cart_is_empty(self):
        cart = _cart()
        assert cart.items == []
        assert cart.total == 0.0
        assert cart.expires_at is not None


class TestAddItem:
    def test_add_item_recomputes_total(self):
        cart = _cart()
        cart.add_item("prod-1", 2, 10.0)
        cart.add_item("prod-2", 1, 30.0)
        assert cart.total == 50.0
        assert len(cart.items) == 2

    def test_adding_same_product_merges_lines(self):
        cart = _cart()
        cart.add_item("prod-1", 2, 10.0)
        cart.add_item("prod-1", 3, 10.0)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5

    def test_merge_refreshes_unit_price(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        cart.add_item("prod-1", 1, 12.5)
        assert cart.items[0].unit_price == 12.5
        assert cart.total == 25.0

    def test_add_raises_event(self):
        cart = _cart()
        cart.add_item("prod-1", 2, 10.0)
        event = cart._events[-1]
        assert isinstance(event, CartItemAdded)
        assert event.cart_total == 20.0

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _cart().add_item("prod-1", 0, 10.0)

    def test_mutation_extends_expiry(self):
        cart = _cart()
        cart.expires_at = datetime.now(UTC) - timedelta(days=1)
        cart.add_item("prod-1", 1, 10.0)
        assert not cart.is_expired()


class TestUpdateAndRemove:
    def test_update_quantity(self):
        cart = _cart()
        item = cart.add_item("prod-1", 1, 10.0)
        cart.update_item_quantity(str(item.id), 4)
        assert cart.items[0].quantity == 4
        assert cart.total == 40.0
        assert isinstance(cart._events[-1], CartItemQuantityUpdated)

    def test_update_unknown_item(self):
        with pytest.raises(NotFoundError):
            _cart().update_item_quantity("missing", 2)

    def test_remove_item(self):
        cart = _cart()
        item = cart.add_item("prod-1", 1, 10.0)
        cart.add_item("prod-2", 1, 5.0)
        cart.remove_item(str(item.id))
        assert len(cart.items) == 1
        assert cart.total == 5.0
        assert isinstance(cart._events[-1], CartItemRemoved)

    def test_remove_unknown_item(self):
        with pytest.raises(NotFoundError):
            _cart().remove_item("missing")


class TestClearAndExpiry:
    def test_clear_empties_cart(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        cart.add_item("prod-2", 2, 5.0)
        cart.clear()
        assert cart.items == []
        assert cart.total == 0.0
        event = cart._events[-1]
        assert isinstance(event, CartCleared)
        assert event.items_removed == 2

    def test_fresh_cart_is_not_expired(self):
        assert not _cart().is_expired()

    def test_cart_expires_after_ttl(self):
        cart = _cart()
        assert cart.is_expired(datetime.now(UTC) + CART_TTL + timedelta(minutes=1))

    def test_expire_if_stale_empties_old_cart(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        later = datetime.now(UTC) + CART_TTL + timedelta(days=1)
        assert cart.expire_if_stale(later) is True
        assert cart.items == []

    def test_expire_if_stale_keeps_fresh_cart(self):
        cart = _cart()
        cart.add_item("prod-1", 1, 10.0)
        assert cart.expire_if_stale() is False
        assert len(cart.items) == 1
