"""
Pricing types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

type ConversionRates = Mapping[str, Decimal]
"""Foreign currency code → multiplier into the base currency."""


@dataclass(frozen=True, slots=True)
class PricingResult:
    """
    Derived totals, never persisted.

    Invariant: payable == max(0, subtotal - discount) + shipping_charge,
    every field >= 0, every field rounded to the base minor unit.
    """

    subtotal: Decimal
    discount: Decimal
    shipping_charge: Decimal
    payable: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "shippingCharge": str(self.shipping_charge),
            "payable": str(self.payable),
        }


__all__ = ("ConversionRates", "PricingResult")
