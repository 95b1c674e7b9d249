"""Domain events for the Order aggregate.

Events are immutable facts. Line items and the shipping address are carried
as JSON so consumers get the exact snapshot taken at checkout.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into an order at checkout."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True)
    items_price = Float(required=True)
    tax_price = Float(required=True)
    shipping_price = Float(required=True)
    total_price = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """Payment was confirmed. Raised at most once per order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String(required=True)
    payment_status = String()
    payer_email = String()
    amount = Float(required=True)
    source = String(required=True)  # client | webhook | manual
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentFailed:
    """The processor reported a failed payment attempt."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String()
    reason = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    delivered_at = DateTime(required=True)
