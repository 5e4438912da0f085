"""
Cart — client-held line items as value types.

    from cartsync import cart as K

    cart = K.Cart.from_payload(stored_items)   # normalized on the way in
    cart = K.set_quantity(cart, "P1", "M", 2)
"""

from cartsync.cart._types import (
    MAX_PER_LINE,
    NO_VARIANT,
    LineKey,
    variant_of,
    CartLine,
    Cart,
)
from cartsync.cart._normalize import clamp_quantity, merge, normalize
from cartsync.cart._ops import add_line, remove_line, set_quantity, change_variant

__all__ = (
    "MAX_PER_LINE",
    "NO_VARIANT",
    "LineKey",
    "variant_of",
    "CartLine",
    "Cart",
    "clamp_quantity",
    "merge",
    "normalize",
    "add_line",
    "remove_line",
    "set_quantity",
    "change_variant",
)
