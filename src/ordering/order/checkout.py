"""Checkout — converts the caller's cart into an order.

Everything happens inside one command handler, and therefore one unit of
work: the order is added, every product's stock is decremented and the cart
is emptied, and all of it commits together or not at all. Each decrement is
a conditional update in storage; if another checkout took the stock first it
misses, the unit of work is rolled back and the caller re-runs the whole
handler against fresh state (see ``ordering.concurrency``).
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import EmptyCartError, InsufficientStockError, NotFoundError
from ordering.inventory.product import Product
from ordering.order.order import Order, PaymentMethod

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: {street, city, state, zip_code, country}
    payment_method = String(required=True, choices=PaymentMethod)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(Cart)
        product_repo = current_domain.repository_for(Product)

        cart = cart_repo.for_user(command.user_id)
        if cart is None or cart.is_expired() or not cart.items:
            raise EmptyCartError()

        products = {}
        items_data = []
        for line in cart.items:
            try:
                product = product_repo.get(line.product_id)
            except ObjectNotFoundError as exc:
                raise NotFoundError("Product not found") from exc

            if not product.has_stock_for(line.quantity):
                raise InsufficientStockError(product.name)

            products[str(product.id)] = (product, line.quantity)
            items_data.append(
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "quantity": line.quantity,
                    "unit_price": product.price,
                    "image": product.image,
                }
            )

        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )
        order = Order.place(
            user_id=command.user_id,
            items_data=items_data,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
        )

        try:
            current_domain.repository_for(Order).add(order)
            for product, quantity in products.values():
                product_repo.decrement_if_available(product, quantity)
                product.decrement_stock(quantity, order_id=order.id)
                product_repo.add(product)
            cart.clear()
            cart_repo.add(cart)
        except Exception:
            logger.error(
                "checkout_aborted",
                order_id=str(order.id),
                user_id=str(command.user_id),
                product_ids=list(products),
            )
            raise

        logger.info(
            "checkout_placed",
            order_id=str(order.id),
            user_id=str(command.user_id),
            item_count=len(items_data),
            total_price=order.total_price,
        )
        return str(order.id)
