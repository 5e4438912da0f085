"""
Coupon types — the two coupon shapes, outcomes and lookup protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Protocol


def normalize_code(code: str) -> str:
    """Codes are typed by hand: compare trimmed, upper-cased."""
    return (code or "").strip().upper()


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ProductCoupon:
    """
    Percentage off one product.

    one_time: a customer may redeem it only once.
    """

    code: str
    product_id: str
    discount_percentage: Decimal
    expires_at: datetime | None = None
    one_time: bool = False


@dataclass(frozen=True, slots=True)
class GlobalCoupon:
    """Flat amount off the cart, once the cart reaches min_cart_total."""

    code: str
    discount_amount: Decimal
    min_cart_total: Decimal
    expires_at: datetime | None = None


type Coupon = ProductCoupon | GlobalCoupon


# ═══════════════════════════════════════════════════════════════════════════════
# Outcomes
# ═══════════════════════════════════════════════════════════════════════════════


class RejectReason(Enum):
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    PRODUCT_NOT_IN_CART = "PRODUCT_NOT_IN_CART"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    ALREADY_USED = "ALREADY_USED"
    LOOKUP_FAILED = "LOOKUP_FAILED"


@dataclass(frozen=True, slots=True)
class AppliedCoupon:
    """A coupon that held against a specific cart, with its computed discount."""

    coupon: Coupon
    discount: Decimal

    @property
    def code(self) -> str:
        return self.coupon.code


@dataclass(frozen=True, slots=True)
class CouponRejected:
    code: str
    reason: RejectReason
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Lookups
# ═══════════════════════════════════════════════════════════════════════════════


class CouponLookup(Protocol):
    """Find a coupon by its normalized code; None when no such code exists."""

    async def __call__(self, code: str) -> Coupon | None: ...


class UsageLookup(Protocol):
    """Has this customer already redeemed the code?"""

    async def __call__(self, code: str, identity: str) -> bool: ...


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
)
