"""Repository for the Cart aggregate."""

from ordering.cart.cart import Cart
from ordering.domain import ordering


@ordering.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id) -> Cart | None:
        """The user's cart, or None if they never added anything."""
        carts = self._dao.query.filter(user_id=str(user_id)).all().items
        return carts[0] if carts else None

    def expired(self, as_of) -> list[Cart]:
        """Carts holding items whose TTL has passed."""
        carts = self._dao.query.filter(expires_at__lte=as_of).limit(None).all().items
        return [c for c in carts if c.items and c.is_expired(as_of)]
