"""
Quote — the corrected cart and its totals, computed as a dependency graph.

    from cartsync import quote as Q

    quote = await Q.build_quote(Q.QuoteRequest(cart=cart, stock_lookup=stock))
"""

from cartsync.quote._types import QuoteRequest, Quote
from cartsync.quote._nodes import (
    RequestNode,
    ReconcileNode,
    ShippingNode,
    CouponNode,
    PricingNode,
    QuoteNode,
)
from cartsync.quote._engine import build_quote

__all__ = (
    "QuoteRequest",
    "Quote",
    "RequestNode",
    "ReconcileNode",
    "ShippingNode",
    "CouponNode",
    "PricingNode",
    "QuoteNode",
    "build_quote",
)
