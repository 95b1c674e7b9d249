"""Repository for the Product aggregate."""

from ordering.concurrency import conditional_update
from ordering.domain import ordering
from ordering.inventory.product import Product


@ordering.repository(part_of=Product)
class ProductRepository:
    def decrement_if_available(self, product: Product, quantity: int) -> None:
        """Take ``quantity`` units from the stored row of ``product``.

        Matches only while the row is still at the loaded version and holds at
        least ``quantity`` units; raises ``ExpectedVersionError`` otherwise. Call
        before ``Product.decrement_stock`` on the same loaded copy.
        """
        conditional_update(
            self._dao,
            product,
            conditions={"stock__gte": quantity},
            values={"stock": product.stock - quantity},
        )
