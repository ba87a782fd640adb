"""Cart Snapshot Provider — the only view of the cart that checkout uses."""

from ordering.cart.items import ClearCart, find_cart, process_cart_command


class CartSnapshotProvider:
    def get_cart(self, user_id: str) -> list[dict]:
        """``[{product_id, quantity}, ...]`` in the order items were added."""
        cart = find_cart(user_id)
        if cart is None:
            return []
        return cart.snapshot()

    def clear_cart(self, user_id: str) -> None:
        process_cart_command(ClearCart(user_id=user_id))
