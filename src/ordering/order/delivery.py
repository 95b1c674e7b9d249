"""Delivery status — admin marks an order delivered."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import NotFoundError
from ordering.order.order import Order


@ordering.command(part_of="Order")
class MarkOrderDelivered:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class MarkOrderDeliveredHandler:
    @handle(MarkOrderDelivered)
    def mark_delivered(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError as exc:
            raise NotFoundError("Order not found") from exc

        if order.is_delivered:
            return

        repo.claim(order)
        order.mark_delivered()
        repo.add(order)
