from enum import Enum


class InventoryPolicy(str, Enum):
    """
    Behaviour when a tracked product runs out of stock.

    DENY: adding more than the available quantity to the cart is rejected
    CONTINUE: overselling is allowed (made-to-order prints)
    """
    DENY = "deny"
    CONTINUE = "continue"
