"""
Coupon resolver — decide whether a code holds against a cart, and for how much.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from decimal import Decimal

from combinators import lift as L
from kungfu import Error, Ok, Result

from cartsync._types import ZERO, non_negative
from cartsync.cart import Cart
from cartsync.config import DEFAULT_CONFIG, EngineConfig
from cartsync.coupon._types import (
    AppliedCoupon,
    Coupon,
    CouponLookup,
    CouponRejected,
    GlobalCoupon,
    ProductCoupon,
    RejectReason,
    UsageLookup,
    normalize_code,
)
from cartsync.pricing import ConversionRates, unit_price_in_base

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def _reject(code: str, reason: RejectReason, message: str) -> Result[AppliedCoupon, CouponRejected]:
    logger.debug("coupon %s rejected: %s", code, reason.value)
    return Error(CouponRejected(code=code, reason=reason, message=message))


def _as_utc(moment: datetime) -> datetime:
    """Naive datetimes (common from DB drivers) are taken as UTC."""
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def _is_expired(coupon: Coupon, now: datetime) -> bool:
    return coupon.expires_at is not None and _as_utc(coupon.expires_at) < _as_utc(now)


async def _already_used(
    code: str,
    identity: str | None,
    usage_lookup: UsageLookup | None,
) -> Result[bool, str]:
    if identity is None or usage_lookup is None:
        return Ok(False)
    return await L.catching_async(lambda: usage_lookup(code, identity), on_error=str)


async def _product_discount(
    coupon: ProductCoupon,
    cart: Cart,
    cart_total: Decimal,
    *,
    identity: str | None,
    usage_lookup: UsageLookup | None,
    rates: ConversionRates | None,
    config: EngineConfig,
) -> Result[AppliedCoupon, CouponRejected]:
    line = cart.first_for(coupon.product_id)
    if line is None:
        return _reject(
            coupon.code,
            RejectReason.PRODUCT_NOT_IN_CART,
            f"Coupon {coupon.code} only applies to a product that is not in your cart",
        )

    if coupon.one_time:
        match await _already_used(coupon.code, identity, usage_lookup):
            case Error(e):
                logger.warning("coupon usage lookup failed for %s: %s", coupon.code, e)
                return _reject(
                    coupon.code, RejectReason.LOOKUP_FAILED, "Could not verify coupon, please try again"
                )
            case Ok(True):
                return _reject(
                    coupon.code, RejectReason.ALREADY_USED, f"You have already used coupon {coupon.code}"
                )
            case Ok(_):
                pass

    # One unit of the matched line, not the quantity-extended line total
    percentage = min(HUNDRED, non_negative(coupon.discount_percentage))
    unit = unit_price_in_base(line, rates, config=config)
    discount = min(unit * percentage / HUNDRED, cart_total)
    return Ok(AppliedCoupon(coupon=coupon, discount=max(ZERO, discount)))


def _global_discount(coupon: GlobalCoupon, cart_total: Decimal) -> Result[AppliedCoupon, CouponRejected]:
    minimum = non_negative(coupon.min_cart_total)
    if cart_total < minimum:
        return _reject(
            coupon.code,
            RejectReason.BELOW_MINIMUM,
            f"Coupon {coupon.code} needs a cart total of at least {minimum}",
        )
    discount = min(non_negative(coupon.discount_amount), cart_total)
    return Ok(AppliedCoupon(coupon=coupon, discount=discount))


async def resolve(
    code: str,
    cart: Cart,
    coupon_lookup: CouponLookup,
    cart_total: Decimal,
    now: datetime,
    *,
    identity: str | None = None,
    usage_lookup: UsageLookup | None = None,
    rates: ConversionRates | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Result[AppliedCoupon, CouponRejected]:
    """
    Resolve a code against a cart.

    NOT_FOUND and EXPIRED are checked before any type-specific rule.
    cart_total is the base-currency subtotal of the same cart. now comes
    from the caller's clock so expiry is reproducible.

    Example:
        match await resolve("SAVE10", cart, coupons, subtotal, clock()):
            case Ok(applied):
                discount = applied.discount
            case Error(rejected):
                show(rejected.message)
    """
    normalized = normalize_code(code)
    if not normalized:
        return _reject(normalized, RejectReason.NOT_FOUND, "Please enter a coupon code")

    found: Result[Coupon | None, str] = await L.catching_async(
        lambda: coupon_lookup(normalized),
        on_error=str,
    )

    match found:
        case Error(e):
            logger.warning("coupon lookup failed for %s: %s", normalized, e)
            return _reject(normalized, RejectReason.LOOKUP_FAILED, "Could not verify coupon, please try again")
        case Ok(None):
            return _reject(normalized, RejectReason.NOT_FOUND, f"Coupon {normalized} does not exist")
        case Ok(coupon):
            pass

    if _is_expired(coupon, now):
        return _reject(normalized, RejectReason.EXPIRED, f"Coupon {normalized} has expired")

    total = non_negative(cart_total)
    match coupon:
        case ProductCoupon():
            return await _product_discount(
                coupon,
                cart,
                total,
                identity=identity,
                usage_lookup=usage_lookup,
                rates=rates,
                config=config,
            )
        case GlobalCoupon():
            return _global_discount(coupon, total)


__all__ = ("resolve",)
