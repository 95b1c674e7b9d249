"""Order aggregate — the immutable record of a purchase.

Line items, shipping address and pricing are fixed at placement; catalogue
changes made afterwards never reach an existing order. Only the payment and
delivery sub-states move:

    payment:   UNPAID → PAID            (terminal, at most once)
    delivery:  pending → processing → delivered

Payment can be confirmed by three independent paths (client confirmation,
processor webhook, manual admin entry). ``mark_paid`` is the single
transition for all of them and is idempotent: the first confirmation wins,
every later one is a no-op. Concurrent confirmations on the same order are
serialized by the aggregate version check on save.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderDelivered,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
)

TAX_RATE = 0.10
FREE_SHIPPING_THRESHOLD = 100.0
FLAT_SHIPPING = 10.0


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


class PaymentSource(Enum):
    CLIENT = "client"
    WEBHOOK = "webhook"
    MANUAL = "manual"


def price_items(items_price: float) -> dict:
    """Derive tax, shipping and total from the items subtotal."""
    items_price = round(items_price, 2)
    tax_price = round(items_price * TAX_RATE, 2)
    shipping_price = 0.0 if items_price >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING
    return {
        "items_price": items_price,
        "tax_price": tax_price,
        "shipping_price": shipping_price,
        "total_price": round(items_price + tax_price + shipping_price, 2),
    }


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@ordering.value_object(part_of="Order")
class PaymentResult:
    """What the processor (or an admin) reported for the successful payment."""

    transaction_id = String(required=True, max_length=255)
    status = String(max_length=50)
    update_time = String(max_length=50)
    payer_email = String(max_length=255)


@ordering.value_object(part_of="Order")
class PaymentFailure:
    """The most recent failed attempt. Never touches ``is_paid``."""

    transaction_id = String(max_length=255)
    reason = String(max_length=500)
    failed_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A frozen copy of a cart line, with the product's name, price and image at checkout."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    image = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.STRIPE.value)
    items_price = Float(default=0.0)
    tax_price = Float(default=0.0)
    shipping_price = Float(default=0.0)
    total_price = Float(default=0.0)
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    payment_result = ValueObject(PaymentResult)
    payment_failure = ValueObject(PaymentFailure)
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def paid_order_has_paid_at(self):
        if self.is_paid and self.paid_at is None:
            raise ValidationError({"paid_at": ["A paid order must record when it was paid"]})

    @invariant.post
    def delivered_order_has_delivered_at(self):
        if self.is_delivered and self.delivered_at is None:
            raise ValidationError({"delivered_at": ["A delivered order must record when it was delivered"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, items_data, shipping_address, payment_method):
        """Create an order from checkout snapshots.

        Args:
            user_id: The owner. Never changes afterwards.
            items_data: List of dicts with product_id, name, quantity,
                        unit_price, image.
            shipping_address: Dict with street, city, state, zip_code, country.
            payment_method: "stripe" or "paypal".
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        pricing = price_items(sum(i["unit_price"] * i["quantity"] for i in items_data))

        order = cls(
            user_id=user_id,
            items=[OrderItem(**item) for item in items_data],
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
            **pricing,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(i.product_id),
                            "name": i.name,
                            "quantity": i.quantity,
                            "unit_price": i.unit_price,
                        }
                        for i in order.items
                    ]
                ),
                shipping_address=json.dumps(shipping_address),
                payment_method=order.payment_method,
                placed_at=now,
                **pricing,
            )
        )
        return order

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_paid(self, transaction_id, status=None, update_time=None, payer_email=None, source="manual") -> bool:
        """Record a successful payment.

        Returns True if this call moved the order to paid, False if the
        order was already paid (nothing is changed in that case).
        """
        if self.is_paid:
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_paid = True
            self.paid_at = now
            self.payment_result = PaymentResult(
                transaction_id=transaction_id,
                status=status,
                update_time=update_time or now.isoformat(),
                payer_email=payer_email,
            )
            if self.status == OrderStatus.PENDING.value:
                self.status = OrderStatus.PROCESSING.value
            self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                user_id=str(self.user_id),
                transaction_id=transaction_id,
                payment_status=status,
                payer_email=payer_email,
                amount=self.total_price,
                source=source,
                paid_at=now,
            )
        )
        return True

    def record_payment_failure(self, transaction_id=None, reason=None):
        """Keep the processor's failure notice. A paid order stays paid."""
        now = datetime.now(UTC)
        self.payment_failure = PaymentFailure(
            transaction_id=transaction_id,
            reason=reason,
            failed_at=now,
        )
        self.updated_at = now

        self.raise_(
            OrderPaymentFailed(
                order_id=str(self.id),
                user_id=str(self.user_id),
                transaction_id=transaction_id,
                reason=reason,
                failed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    def mark_delivered(self) -> bool:
        if self.is_delivered:
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_delivered = True
            self.delivered_at = now
            self.status = OrderStatus.DELIVERED.value
            self.updated_at = now

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                user_id=str(self.user_id),
                delivered_at=now,
            )
        )
        return True
