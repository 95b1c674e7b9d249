"""Cart item management — commands and handler.

Carts are addressed by their owner, never by id: a user only ever touches
their own cart. The cart is created on the first add.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import InsufficientStockError, NotFoundError
from ordering.inventory.product import Product


@ordering.command(part_of="Cart")
class AddCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Cart")
class RemoveCartItem:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


def _product(product_id) -> Product:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError as exc:
        raise NotFoundError("Product not found") from exc


def _existing_cart(repo, user_id) -> Cart:
    cart = repo.for_user(user_id)
    if cart is None:
        raise NotFoundError("Cart not found")
    cart.expire_if_stale()
    return cart


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        product = _product(command.product_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None:
            cart = Cart.create(user_id=command.user_id)
        else:
            cart.expire_if_stale()

        wanted = cart.quantity_of(product.id) + command.quantity
        if not product.has_stock_for(wanted):
            raise InsufficientStockError(product.name)

        item = cart.add_item(
            product_id=product.id,
            quantity=command.quantity,
            unit_price=product.price,
        )
        repo.add(cart)
        return str(item.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(repo, command.user_id)

        item = cart.find_item(command.item_id)
        product = _product(item.product_id)
        if not product.has_stock_for(command.quantity):
            raise InsufficientStockError(product.name)

        cart.update_item_quantity(item_id=command.item_id, new_quantity=command.quantity)
        repo.add(cart)

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(repo, command.user_id)
        cart.remove_item(item_id=command.item_id)
        repo.add(cart)
