"""Ordering bounded context: carts, orders, inventory and payment state.

Handles the shopping cart, checkout of a cart into an immutable order,
per-product stock bookkeeping, and the payment/delivery status of orders.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")
