"""
Quote nodes — normalize → validate → coupon → shipping → pricing.

Shipping depends only on the request, so it runs alongside stock
validation. Coupon and pricing wait for the corrected cart.
"""

import logging
from decimal import Decimal

from kungfu import Error, Ok

from cartsync import graph as G
from cartsync.cart import Cart, merge
from cartsync.coupon import AppliedCoupon, CouponRejected, resolve
from cartsync.inventory import CartValidation, validate_cart
from cartsync.pricing import PricingResult, price, raw_subtotal
from cartsync.quote._types import Quote, QuoteRequest
from cartsync.shipping import shipping_charge

logger = logging.getLogger(__name__)


@G.node
class RequestNode:
    """Entry point."""

    def __init__(self, data: QuoteRequest) -> None:
        self.data = data

    @classmethod
    def __compose__(cls, request: QuoteRequest) -> "RequestNode":
        return cls(request)


@G.node
class ReconcileNode:
    """Normalized, stock-checked cart."""

    def __init__(self, data: CartValidation) -> None:
        self.data = data

    @property
    def cart(self) -> Cart:
        return self.data.corrected_cart

    @classmethod
    async def __compose__(cls, request: RequestNode) -> "ReconcileNode":
        req = request.data
        cap = req.config.max_per_line
        # Over-cap quantities must reach validation to be reported
        cart = Cart(merge(req.cart.lines))
        return cls(await validate_cart(cart, req.stock_lookup, max_per_line=cap))


@G.node
class ShippingNode:
    def __init__(self, data: Decimal) -> None:
        self.data = data

    @classmethod
    def __compose__(cls, request: RequestNode) -> "ShippingNode":
        req = request.data
        return cls(
            shipping_charge(
                req.destination,
                req.payment_method,
                req.config.ships_to(req.country),
                req.rate_table,
                config=req.config,
            )
        )


@G.node
class CouponNode:
    """Held coupon re-resolved against the corrected cart."""

    def __init__(self, applied: AppliedCoupon | None, rejected: CouponRejected | None) -> None:
        self.applied = applied
        self.rejected = rejected

    @classmethod
    async def __compose__(cls, request: RequestNode, reconciled: ReconcileNode) -> "CouponNode":
        req = request.data
        ctx = req.coupon_context()
        if not req.coupon_code or ctx is None:
            return cls(None, None)

        cart = reconciled.cart
        outcome = await resolve(
            req.coupon_code,
            cart,
            ctx.lookup,
            raw_subtotal(cart, req.conversion_rates, config=req.config),
            ctx.clock(),
            identity=ctx.identity,
            usage_lookup=ctx.usage_lookup,
            rates=ctx.rates,
            config=ctx.config,
        )
        match outcome:
            case Ok(applied):
                return cls(applied, None)
            case Error(rejected):
                return cls(None, rejected)


@G.node
class PricingNode:
    def __init__(self, data: PricingResult) -> None:
        self.data = data

    @classmethod
    def __compose__(
        cls,
        request: RequestNode,
        reconciled: ReconcileNode,
        coupon: CouponNode,
        shipping: ShippingNode,
    ) -> "PricingNode":
        req = request.data
        discount = coupon.applied.discount if coupon.applied is not None else Decimal(0)
        return cls(
            price(
                reconciled.cart,
                discount,
                shipping.data,
                req.conversion_rates,
                config=req.config,
            )
        )


@G.node
class QuoteNode:
    """Terminal node."""

    def __init__(self, data: Quote) -> None:
        self.data = data

    @classmethod
    def __compose__(
        cls,
        request: RequestNode,
        reconciled: ReconcileNode,
        coupon: CouponNode,
        pricing: PricingNode,
    ) -> "QuoteNode":
        validation = reconciled.data
        blocked = validation.has_lookup_failures and request.data.config.block_on_lookup_failure
        quote = Quote(
            cart=reconciled.cart,
            validation=validation,
            pricing=pricing.data,
            coupon=coupon.applied,
            coupon_rejection=coupon.rejected,
            blocked=blocked,
        )
        logger.debug(
            "quote: %d lines, payable %s, blocked=%s", len(quote.cart), quote.pricing.payable, blocked
        )
        return cls(quote)


__all__ = (
    "RequestNode",
    "ReconcileNode",
    "ShippingNode",
    "CouponNode",
    "PricingNode",
    "QuoteNode",
)
