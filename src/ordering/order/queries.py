"""Read side of orders: the caller's own orders, and one order by id."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.caller import Caller
from ordering.errors import ForbiddenError, NotFoundError
from ordering.order.order import Order


def list_orders_for(user_id) -> list[Order]:
    return current_domain.repository_for(Order).for_user(user_id)


def get_order_for(order_id, caller: Caller) -> Order:
    """Fetch an order the caller may see: their own, or any order for an admin."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFoundError("Order not found") from exc

    if not caller.can_access(order.user_id):
        raise ForbiddenError("Not authorized to view this order")
    return order
