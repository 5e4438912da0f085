"""
Cart mutations — user actions as pure functions returning a new Cart.

Every result is normalized, so the 1..cap / unique-key invariants hold after
each call.
"""

from __future__ import annotations

from dataclasses import replace

from cartsync.cart._types import Cart, CartLine, MAX_PER_LINE, NO_VARIANT, variant_of
from cartsync.cart._normalize import normalize


def add_line(cart: Cart, line: CartLine, *, max_per_line: int = MAX_PER_LINE) -> Cart:
    """Add units; an existing line with the same key is topped up (capped)."""
    return Cart(normalize((*cart.lines, line), max_per_line=max_per_line))


def remove_line(cart: Cart, product_id: str, variant_key: str = NO_VARIANT) -> Cart:
    key = (product_id, variant_of(variant_key))
    return Cart(tuple(line for line in cart.lines if line.key != key))


def set_quantity(
    cart: Cart,
    product_id: str,
    variant_key: str,
    quantity: int,
    *,
    max_per_line: int = MAX_PER_LINE,
) -> Cart:
    """Set a line's quantity. Zero or less removes the line."""
    key = (product_id, variant_of(variant_key))
    if quantity <= 0:
        return remove_line(cart, *key)
    return Cart(
        normalize(
            (line.with_quantity(quantity) if line.key == key else line for line in cart.lines),
            max_per_line=max_per_line,
        )
    )


def change_variant(
    cart: Cart,
    product_id: str,
    old_variant: str,
    new_variant: str,
    *,
    max_per_line: int = MAX_PER_LINE,
) -> Cart:
    """
    Swap a line's size.

    If the cart already holds the target size, the two lines merge
    (summed, capped) at the position of the first one.
    """
    old_key = (product_id, variant_of(old_variant))
    target = variant_of(new_variant)
    return Cart(
        normalize(
            (
                replace(line, variant_key=target) if line.key == old_key else line
                for line in cart.lines
            ),
            max_per_line=max_per_line,
        )
    )


__all__ = ("add_line", "remove_line", "set_quantity", "change_variant")
