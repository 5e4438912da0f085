"""
Coupon — resolve one code against a cart, hold at most one.

    from cartsync import coupon as D

    match await D.resolve("SAVE10", cart, lookup, subtotal, now):
        case Ok(applied): ...
        case Error(rejected): ...
"""

from cartsync.coupon._types import (
    normalize_code,
    ProductCoupon,
    GlobalCoupon,
    Coupon,
    RejectReason,
    AppliedCoupon,
    CouponRejected,
    CouponLookup,
    UsageLookup,
)
from cartsync.coupon._resolve import resolve
from cartsync.coupon._slot import CouponContext, CouponSlot

__all__ = (
    "normalize_code",
    "ProductCoupon",
    "GlobalCoupon",
    "Coupon",
    "RejectReason",
    "AppliedCoupon",
    "CouponRejected",
    "CouponLookup",
    "UsageLookup",
    "resolve",
    "CouponContext",
    "CouponSlot",
)
