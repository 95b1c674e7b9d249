"""Product aggregate — the inventory ledger.

Product details are owned by the catalogue; ordering keeps the parts it
needs at checkout (name, price, image) and the authoritative stock count.
Stock only moves through ``decrement_stock`` and ``restore_stock``, and the
aggregate refuses to go below zero. Two checkouts racing on the same product
load the same version; only one of them can persist, the other is retried
against the reduced count.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String

from ordering.domain import ordering
from ordering.errors import InsufficientStockError
from ordering.inventory.events import StockDecremented, StockDepleted, StockRestored


@ordering.aggregate
class Product:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=1000)
    stock = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, price, stock=0, image=None):
        now = datetime.now(UTC)
        return cls(
            name=name,
            price=price,
            stock=stock,
            image=image or "",
            created_at=now,
            updated_at=now,
        )

    def has_stock_for(self, quantity) -> bool:
        return (self.stock or 0) >= quantity

    def decrement_stock(self, quantity, order_id=None):
        """Take ``quantity`` units, only if that many are on hand."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if not self.has_stock_for(quantity):
            raise InsufficientStockError(self.name)

        now = datetime.now(UTC)
        self.stock = self.stock - quantity
        self.updated_at = now

        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock,
                order_id=str(order_id) if order_id else None,
                decremented_at=now,
            )
        )
        if self.stock == 0:
            self.raise_(
                StockDepleted(
                    product_id=str(self.id),
                    name=self.name,
                    depleted_at=now,
                )
            )

    def restore_stock(self, quantity, reason="restock"):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        self.stock = (self.stock or 0) + quantity
        self.updated_at = now

        self.raise_(
            StockRestored(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock,
                reason=reason,
                restored_at=now,
            )
        )
