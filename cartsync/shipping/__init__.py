"""
Shipping — two-bucket (metro / other) delivery charge.

    from cartsync import shipping as H

    charge = H.shipping_charge("Dhaka North", "cod", True, H.RateTable(60, 120))
"""

from cartsync._types import PaymentMethod
from cartsync.shipping._types import Region, RegionClassifier, RateTable
from cartsync.shipping._calc import (
    classify_region,
    region_classifier,
    requires_delivery,
    shipping_charge,
)

__all__ = (
    "PaymentMethod",
    "Region",
    "RegionClassifier",
    "RateTable",
    "classify_region",
    "region_classifier",
    "requires_delivery",
    "shipping_charge",
)
