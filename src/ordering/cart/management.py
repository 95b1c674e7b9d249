"""Cart management — clearing and reading the caller's cart."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.concurrency import retry_on_conflict, serialized_writes
from ordering.domain import ordering


@ordering.command(part_of="Cart")
class ClearCart:
    """Remove every line from the user's cart."""

    user_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None or not cart.items:
            return
        cart.clear()
        repo.add(cart)


def cart_for(user_id) -> Cart | None:
    """Load the user's cart, emptying it first if it has expired."""
    repo = current_domain.repository_for(Cart)
    cart = repo.for_user(user_id)
    if cart is None or not cart.items or not cart.is_expired():
        return cart

    def expire():
        with serialized_writes():
            current = repo.for_user(user_id)
            if current.expire_if_stale():
                repo.add(current)
            return current

    return retry_on_conflict(expire)
