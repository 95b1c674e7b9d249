"""Cart aggregate (CQRS) — one mutable cart per user.

The cart is created lazily on the first add, emptied (never deleted) at
checkout, and softly expires after 30 days without changes: an expired cart
is emptied the next time it is loaded, or by the periodic expiry sweep.
``total`` is derived from the lines and recomputed on every mutation.
"""

from datetime import UTC, datetime, timedelta

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
)
from ordering.domain import ordering
from ordering.errors import NotFoundError

CART_TTL = timedelta(days=30)


def _naive(value):
    """Stored datetimes may come back without tzinfo; compare everything as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


@ordering.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    added_at = DateTime()


@ordering.aggregate
class Cart:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    total = Float(default=0.0)
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_not_be_negative(self):
        if self.total is not None and self.total < 0:
            raise ValidationError({"total": ["Cart total cannot be negative"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            total=0.0,
            expires_at=now + CART_TTL,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFoundError("Item not found in cart")
        return item

    def _touch(self, now):
        self.total = round(sum(i.unit_price * i.quantity for i in self.items), 2)
        self.updated_at = now
        self.expires_at = now + CART_TTL

    def quantity_of(self, product_id) -> int:
        return sum(i.quantity for i in self.items if str(i.product_id) == str(product_id))

    def is_expired(self, as_of=None) -> bool:
        as_of = as_of or datetime.now(UTC)
        return self.expires_at is not None and _naive(self.expires_at) <= _naive(as_of)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, unit_price):
        """Add a product, or increase its quantity if it is already in the cart.

        The line price always follows the latest product price.
        """
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = next((i for i in self.items if str(i.product_id) == str(product_id)), None)

        if existing:
            existing.quantity += quantity
            existing.unit_price = unit_price
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                quantity=quantity,
                unit_price=unit_price,
                added_at=now,
            )
            self.add_items(item)

        self._touch(now)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                item_id=str(item.id),
                product_id=str(product_id),
                quantity=item.quantity,
                unit_price=unit_price,
                cart_total=self.total,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity):
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self.find_item(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self._touch(datetime.now(UTC))

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                cart_total=self.total,
            )
        )

    def remove_item(self, item_id):
        item = self.find_item(item_id)
        self.remove_items(item)
        self._touch(datetime.now(UTC))

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                cart_total=self.total,
            )
        )

    def clear(self):
        """Empty the cart. The cart itself lives on for the next purchase."""
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)

        now = datetime.now(UTC)
        self._touch(now)

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                items_removed=removed,
                cleared_at=now,
            )
        )

    def expire_if_stale(self, as_of=None) -> bool:
        """Empty the cart if its TTL has passed. Returns True when it did."""
        if not self.items or not self.is_expired(as_of):
            return False
        self.clear()
        return True
