"""Repository for the Order aggregate."""

from ordering.concurrency import conditional_update
from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def for_user(self, user_id) -> list[Order]:
        """All orders of a user, newest first."""
        return (
            self._dao.query.filter(user_id=str(user_id))
            .order_by("-created_at")
            .limit(None)
            .all()
            .items
        )

    def mark_paid_if_unpaid(self, order: Order) -> None:
        """Flip the stored paid flag, only if it is still unset at the loaded version.

        Raises ``ExpectedVersionError`` when another confirmation got there
        first. Call before ``Order.mark_paid`` on the same loaded copy.
        """
        conditional_update(
            self._dao,
            order,
            conditions={"is_paid": False},
            values={"is_paid": True},
        )

    def claim(self, order: Order) -> None:
        """Hold the stored row for this unit of work while it is at the loaded version."""
        conditional_update(self._dao, order)
