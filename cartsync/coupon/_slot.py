"""
Coupon slot — at most one applied coupon, re-checked whenever the cart changes.

    slot = CouponSlot()
    slot, outcome = await slot.apply("SAVE10", cart, ctx)
    ...
    slot, dropped = await slot.revalidate(new_cart, ctx)
    if dropped is not None:
        notify(dropped.message)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from kungfu import Error, Nothing, Ok, Option, Result, Some

from cartsync._types import ZERO, Clock, utc_now
from cartsync.cart import Cart
from cartsync.config import DEFAULT_CONFIG, EngineConfig
from cartsync.coupon._resolve import resolve
from cartsync.coupon._types import AppliedCoupon, CouponLookup, CouponRejected, UsageLookup
from cartsync.pricing import ConversionRates, raw_subtotal

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CouponContext:
    """Everything resolution needs besides the code and the cart."""

    lookup: CouponLookup
    clock: Clock = utc_now
    rates: ConversionRates | None = None
    config: EngineConfig = DEFAULT_CONFIG
    usage_lookup: UsageLookup | None = None
    identity: str | None = None


@dataclass(frozen=True, slots=True)
class CouponSlot:
    """
    Single-valued coupon holder.

    apply() replaces, never stacks. revalidate() is the obligation every
    cart change carries: a coupon whose precondition broke is detached and
    the discount goes back to zero.
    """

    current: Option[AppliedCoupon] = field(default_factory=Nothing)

    @property
    def applied(self) -> AppliedCoupon | None:
        match self.current:
            case Some(applied):
                return applied
            case _:
                return None

    @property
    def discount(self) -> Decimal:
        applied = self.applied
        return applied.discount if applied is not None else ZERO

    @property
    def code(self) -> str | None:
        applied = self.applied
        return applied.code if applied is not None else None

    def detach(self) -> CouponSlot:
        return CouponSlot()

    async def _resolve(
        self, code: str, cart: Cart, ctx: CouponContext
    ) -> Result[AppliedCoupon, CouponRejected]:
        return await resolve(
            code,
            cart,
            ctx.lookup,
            raw_subtotal(cart, ctx.rates, config=ctx.config),
            ctx.clock(),
            identity=ctx.identity,
            usage_lookup=ctx.usage_lookup,
            rates=ctx.rates,
            config=ctx.config,
        )

    async def apply(
        self, code: str, cart: Cart, ctx: CouponContext
    ) -> tuple[CouponSlot, Result[AppliedCoupon, CouponRejected]]:
        """
        Try a new code.

        The previous coupon is cleared first, so a rejected code leaves the
        slot empty rather than falling back to the old one.
        """
        outcome = await self._resolve(code, cart, ctx)
        match outcome:
            case Ok(applied):
                logger.info("coupon %s applied, discount %s", applied.code, applied.discount)
                return CouponSlot(Some(applied)), outcome
            case Error(_):
                return CouponSlot(), outcome

    async def revalidate(
        self, cart: Cart, ctx: CouponContext
    ) -> tuple[CouponSlot, CouponRejected | None]:
        """Re-run resolution for the held code against a changed cart."""
        applied = self.applied
        if applied is None:
            return self, None

        match await self._resolve(applied.code, cart, ctx):
            case Ok(fresh):
                return CouponSlot(Some(fresh)), None
            case Error(rejected):
                logger.warning("coupon %s dropped: %s", applied.code, rejected.reason.value)
                return CouponSlot(), rejected


__all__ = ("CouponContext", "CouponSlot")
