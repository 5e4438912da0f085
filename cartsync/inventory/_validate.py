"""
Inventory validator — reconcile client quantities against live stock.

Lines are checked concurrently; the cart-level result waits for all of them.

    validation = await validate_cart(cart, stock_lookup)
    if not validation.all_valid:
        cart = validation.corrected_cart
"""

from __future__ import annotations

import logging

import combinators as C
from combinators import NoError, lift as L
from kungfu import Error, LazyCoroResult, Ok, Result

from cartsync.cart import Cart, CartLine, MAX_PER_LINE, normalize
from cartsync.inventory._types import (
    CartValidation,
    LineReason,
    LineValidation,
    StockFact,
    StockLookup,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Messages
# ═══════════════════════════════════════════════════════════════════════════════


def _label(line: CartLine, fact: StockFact | None = None) -> str:
    name = (fact.product_title if fact is not None else "") or line.title or line.product_id
    if line.has_variant:
        return f"{name} (size: {line.variant_key})"
    return name


def _message(reason: LineReason, label: str, corrected: int, cap: int) -> str:
    match reason:
        case LineReason.MAX_EXCEEDED:
            return f"Maximum {cap} units allowed for {label}; quantity set to {corrected}"
        case LineReason.UNAVAILABLE:
            return f"{label} is no longer available and was removed from your cart"
        case LineReason.INSUFFICIENT_STOCK:
            return f"Only {corrected} left of {label}; quantity adjusted to {corrected}"
        case LineReason.LOOKUP_FAILED:
            return f"Could not confirm stock for {label}, please try again"


def _invalid(
    line: CartLine,
    reason: LineReason,
    corrected: int,
    cap: int,
    fact: StockFact | None = None,
) -> LineValidation:
    return LineValidation(
        line=line,
        valid=False,
        corrected_quantity=corrected,
        reason=reason,
        message=_message(reason, _label(line, fact), corrected, cap),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# validate_line()
# ═══════════════════════════════════════════════════════════════════════════════


async def validate_line(
    line: CartLine,
    stock_lookup: StockLookup,
    *,
    max_per_line: int = MAX_PER_LINE,
) -> LineValidation:
    """
    Check one line against stock.

    Over the cap → MAX_EXCEEDED without calling out. Otherwise the lookup
    decides; a lookup that raises leaves the quantity untouched.
    """
    if line.quantity > max_per_line:
        return _invalid(line, LineReason.MAX_EXCEEDED, max_per_line, max_per_line)

    fetched: Result[StockFact | None, str] = await L.catching_async(
        lambda: stock_lookup(line.product_id, line.variant_key),
        on_error=lambda e: f"{type(e).__name__}: {e}",
    )

    match fetched:
        case Error(reason):
            logger.warning(
                "stock lookup failed for %s/%s: %s", line.product_id, line.variant_key, reason
            )
            return _invalid(line, LineReason.LOOKUP_FAILED, line.quantity, max_per_line)
        case Ok(None):
            return _invalid(line, LineReason.UNAVAILABLE, 0, max_per_line)
        case Ok(fact):
            pass

    available = max(0, fact.available_quantity)
    if available == 0:
        return _invalid(line, LineReason.UNAVAILABLE, 0, max_per_line, fact)
    if line.quantity > available:
        return _invalid(line, LineReason.INSUFFICIENT_STOCK, available, max_per_line, fact)

    logger.debug("line %s/%s ok (%d <= %d)", line.product_id, line.variant_key, line.quantity, available)
    return LineValidation(line=line, valid=True, corrected_quantity=line.quantity)


# ═══════════════════════════════════════════════════════════════════════════════
# validate_cart()
# ═══════════════════════════════════════════════════════════════════════════════


async def validate_cart(
    cart: Cart,
    stock_lookup: StockLookup,
    *,
    max_per_line: int = MAX_PER_LINE,
) -> CartValidation:
    """
    Check every line concurrently and apply all corrections.

    Not short-circuiting: one failed lookup never prevents the others from
    being reported.
    """
    if cart.is_empty:
        return CartValidation(all_valid=True, corrected_cart=cart, per_line=())

    def check(line: CartLine) -> LazyCoroResult[LineValidation, NoError]:
        async def run() -> Result[LineValidation, NoError]:
            return Ok(await validate_line(line, stock_lookup, max_per_line=max_per_line))

        return LazyCoroResult(run)

    result = await C.traverse_par(list(cart.lines), check)()

    match result:
        case Ok(validations):
            per_line = tuple(validations)
        case Error(e):
            # check() never fails
            raise RuntimeError(f"stock validation aborted: {e!r}")

    corrected = Cart(
        normalize(
            (v.line.with_quantity(v.corrected_quantity) for v in per_line if v.corrected_quantity > 0),
            max_per_line=max_per_line,
        )
    )
    all_valid = all(v.valid for v in per_line)

    if not all_valid:
        logger.info(
            "cart reconciled: %d of %d lines corrected",
            sum(1 for v in per_line if not v.valid),
            len(per_line),
        )

    return CartValidation(all_valid=all_valid, corrected_cart=corrected, per_line=per_line)


__all__ = ("validate_line", "validate_cart")
