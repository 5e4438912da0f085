"""
Quote engine — compiled once at import, run per request.
"""

from __future__ import annotations

from cartsync import graph as G
from cartsync.quote._nodes import QuoteNode
from cartsync.quote._types import Quote, QuoteRequest

_pipeline = G.graph(QuoteNode)


async def build_quote(request: QuoteRequest) -> Quote:
    """
    Reconcile and price a client cart.

    Example:
        quote = await build_quote(QuoteRequest(cart, stock, coupons, rates, coupon_code="SAVE10"))
        quote.cart       # corrected
        quote.pricing    # authoritative totals
        quote.messages   # one per correction
    """
    node = await _pipeline(request)
    return node.data


__all__ = ("build_quote",)
