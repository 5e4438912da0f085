"""
Quote types — one request in, the authoritative corrected state out.
"""

from __future__ import annotations

from dataclasses import dataclass

from cartsync._types import Clock, PaymentMethod, utc_now
from cartsync.cart import Cart
from cartsync.config import DEFAULT_CONFIG, EngineConfig
from cartsync.coupon import AppliedCoupon, CouponContext, CouponLookup, CouponRejected, UsageLookup
from cartsync.inventory import CartValidation, StockLookup
from cartsync.pricing import ConversionRates, PricingResult
from cartsync.shipping import RateTable


@dataclass(frozen=True, slots=True)
class QuoteRequest:
    """
    Client cart plus everything needed to price it.

    The cart is untrusted: it is normalized and validated before anything
    is priced. coupon_code is the code the client currently holds, if any.
    """

    cart: Cart
    stock_lookup: StockLookup
    coupon_lookup: CouponLookup | None = None
    rate_table: RateTable = RateTable()
    coupon_code: str | None = None
    destination: str = ""
    country: str = DEFAULT_CONFIG.delivery_country
    payment_method: PaymentMethod | str = PaymentMethod.COD
    conversion_rates: ConversionRates | None = None
    config: EngineConfig = DEFAULT_CONFIG
    clock: Clock = utc_now
    identity: str | None = None
    usage_lookup: UsageLookup | None = None

    def coupon_context(self) -> CouponContext | None:
        if self.coupon_lookup is None:
            return None
        return CouponContext(
            lookup=self.coupon_lookup,
            clock=self.clock,
            rates=self.conversion_rates,
            config=self.config,
            usage_lookup=self.usage_lookup,
            identity=self.identity,
        )


@dataclass(frozen=True, slots=True)
class Quote:
    """
    Corrected cart and its totals.

    blocked: at least one stock lookup failed and the configuration refuses
    to proceed on unconfirmed stock.
    """

    cart: Cart
    validation: CartValidation
    pricing: PricingResult
    coupon: AppliedCoupon | None = None
    coupon_rejection: CouponRejected | None = None
    blocked: bool = False

    @property
    def changed(self) -> bool:
        return not self.validation.all_valid or self.coupon_rejection is not None

    @property
    def messages(self) -> tuple[str, ...]:
        rejection = (self.coupon_rejection.message,) if self.coupon_rejection is not None else ()
        return (*self.validation.messages, *rejection)


__all__ = ("QuoteRequest", "Quote")
