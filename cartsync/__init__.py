"""
cartsync — cart reconciliation and checkout pricing.

    from cartsync import cart as K       # Client cart as a value type
    from cartsync import inventory as I  # Stock validation
    from cartsync import coupon as D     # Coupon resolution
    from cartsync import pricing as P    # Totals in base currency
    from cartsync import quote as Q      # All of the above as one graph
    from cartsync import checkout as X   # Submission state machine
"""

from cartsync import cart
from cartsync import pricing
from cartsync import shipping
from cartsync import inventory
from cartsync import coupon
from cartsync import idempotency
from cartsync import quote
from cartsync import checkout
from cartsync._errors import CartsyncError, UnknownCurrency, InvalidTransition
from cartsync._types import Money, PaymentMethod, Clock
from cartsync.config import EngineConfig, DEFAULT_CONFIG

__version__ = "0.1.0"

__all__ = (
    "cart",
    "pricing",
    "shipping",
    "inventory",
    "coupon",
    "idempotency",
    "quote",
    "checkout",
    "CartsyncError",
    "UnknownCurrency",
    "InvalidTransition",
    "Money",
    "PaymentMethod",
    "Clock",
    "EngineConfig",
    "DEFAULT_CONFIG",
)
