"""Domain events for the Product aggregate (stock ledger)."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Product")
class StockDecremented:
    """Stock was taken for an order."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)
    order_id = Identifier()
    decremented_at = DateTime(required=True)


@ordering.event(part_of="Product")
class StockRestored:
    """Stock was put back on the shelf (restock or compensation)."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)
    reason = String(max_length=255)
    restored_at = DateTime(required=True)


@ordering.event(part_of="Product")
class StockDepleted:
    """The last unit of a product was sold."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    name = String(required=True)
    depleted_at = DateTime(required=True)
