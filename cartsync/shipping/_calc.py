"""
Shipping calculator — destination bucket × payment method.
"""

from __future__ import annotations

from decimal import Decimal

from cartsync._types import ZERO, PaymentMethod
from cartsync.config import DEFAULT_CONFIG, EngineConfig
from cartsync.shipping._types import RateTable, Region, RegionClassifier


def classify_region(name: str, *, metro: str = DEFAULT_CONFIG.metro_region) -> Region:
    """Case-insensitive substring match on the metro name."""
    if metro and metro.lower() in (name or "").lower():
        return "metro"
    return "other"


def region_classifier(config: EngineConfig = DEFAULT_CONFIG) -> RegionClassifier:
    metro = config.metro_region

    def classify(name: str) -> Region:
        return classify_region(name, metro=metro)

    return classify


def requires_delivery(
    payment_method: PaymentMethod | str,
    config: EngineConfig = DEFAULT_CONFIG,
) -> bool:
    method = PaymentMethod.parse(payment_method)
    return method is not None and method in config.delivery_methods


def shipping_charge(
    destination_region: str,
    payment_method: PaymentMethod | str,
    country_supports_delivery: bool,
    rate_table: RateTable,
    *,
    classifier: RegionClassifier | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Decimal:
    """
    Charge for shipping to a destination.

    0 unless the country is served AND the payment method ships goods.
    Never NaN, never negative.

    Example:
        shipping_charge("Dhaka North", "cod", True, RateTable(Decimal(60), Decimal(120)))
        # Decimal("60")
    """
    if not country_supports_delivery or not requires_delivery(payment_method, config):
        return ZERO

    classify = classifier if classifier is not None else region_classifier(config)
    return rate_table.rate_for(classify(destination_region))


__all__ = ("classify_region", "region_classifier", "requires_delivery", "shipping_charge")
