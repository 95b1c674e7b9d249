"""Stock replenishment — command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.inventory.product import Product


@ordering.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    reason = String(max_length=255, default="restock")


@ordering.command_handler(part_of=Product)
class RestockHandler:
    @handle(RestockProduct)
    def restock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restore_stock(command.quantity, reason=command.reason)
        repo.add(product)
        return product.stock
