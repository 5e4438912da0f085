"""
Pricing — base-currency totals for a cart.

    from cartsync import pricing as P

    result = P.price(cart, discount, shipping, rates)
"""

from cartsync.pricing._types import ConversionRates, PricingResult
from cartsync.pricing._price import to_base, unit_price_in_base, raw_subtotal, price

__all__ = (
    "ConversionRates",
    "PricingResult",
    "to_base",
    "unit_price_in_base",
    "raw_subtotal",
    "price",
)
