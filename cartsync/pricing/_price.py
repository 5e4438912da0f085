"""
Pricing aggregator — currency normalization and totals.

Intermediate sums stay unrounded; each output is rounded exactly once.
"""

from __future__ import annotations

from decimal import Decimal

from cartsync._errors import UnknownCurrency
from cartsync._types import ZERO, non_negative, quantize, to_money
from cartsync.cart import Cart, CartLine
from cartsync.config import DEFAULT_CONFIG, EngineConfig
from cartsync.pricing._types import ConversionRates, PricingResult


def to_base(
    amount: Decimal,
    currency: str,
    rates: ConversionRates | None = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Decimal:
    """
    Convert into the base currency.

    An empty currency is taken as base (legacy carts never stored one).
    Raises UnknownCurrency when no usable rate exists.
    """
    code = currency.upper() if currency else config.base_currency
    if code == config.base_currency:
        return amount

    table = rates if rates is not None else config.conversion_rates
    rate = to_money(table.get(code))
    if rate <= ZERO:
        raise UnknownCurrency(code)
    return amount * rate


def unit_price_in_base(
    line: CartLine,
    rates: ConversionRates | None = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Decimal:
    return to_base(non_negative(line.unit_price), line.currency, rates, config=config)


def raw_subtotal(
    cart: Cart,
    rates: ConversionRates | None = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Decimal:
    """Σ base price × quantity, unrounded."""
    return sum(
        (unit_price_in_base(line, rates, config=config) * line.quantity for line in cart.lines),
        ZERO,
    )


def price(
    cart: Cart,
    applied_discount: object = ZERO,
    shipping_charge: object = ZERO,
    conversion_rates: ConversionRates | None = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> PricingResult:
    """
    Compute subtotal / discount / shipping / payable.

    discount is clamped to [0, subtotal]; shipping below zero or non-finite
    counts as 0. Pure: neither cart nor coupon state is touched.

    Example:
        result = price(cart, applied.discount, Decimal("60"), {"USD": Decimal("120")})
        result.payable
    """
    subtotal = raw_subtotal(cart, conversion_rates, config=config)
    discount = min(non_negative(applied_discount), subtotal)
    shipping = non_negative(shipping_charge)

    subtotal_r = quantize(subtotal, config.minor_units)
    discount_r = quantize(discount, config.minor_units)
    shipping_r = quantize(shipping, config.minor_units)

    return PricingResult(
        subtotal=subtotal_r,
        discount=discount_r,
        shipping_charge=shipping_r,
        payable=max(ZERO, subtotal_r - discount_r) + shipping_r,
    )


__all__ = ("to_base", "unit_price_in_base", "raw_subtotal", "price")
