"""Cart item management — commands and handler.

The cart is created lazily on first add, so callers never have to create one
explicitly.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.shared.locks import cart_locks


@ordering.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)


@ordering.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def find_cart(user_id) -> Cart | None:
    try:
        return current_domain.repository_for(Cart).get(str(user_id))
    except ObjectNotFoundError:
        return None


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = find_cart(command.user_id) or Cart.create(command.user_id)
        cart.add_item(product_id=command.product_id, quantity=command.quantity)
        repo.add(cart)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = find_cart(command.user_id) or Cart.create(command.user_id)
        cart.update_item(product_id=command.product_id, quantity=command.quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = find_cart(command.user_id) or Cart.create(command.user_id)
        cart.remove_item(product_id=command.product_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = find_cart(command.user_id)
        if cart is None or not cart.items:
            return
        cart.clear()
        current_domain.repository_for(Cart).add(cart)


def process_cart_command(command) -> None:
    """Dispatch a cart command with the user's cart locked."""
    with cart_locks.hold(command.user_id):
        current_domain.process(command, asynchronous=False)
