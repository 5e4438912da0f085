"""
Inventory — validate a cart against authoritative stock.

    from cartsync import inventory as I

    validation = await I.validate_cart(cart, stock_lookup)
    for line in validation.corrections:
        print(line.reason, line.message)
"""

from cartsync.inventory._types import (
    LineReason,
    StockFact,
    StockLookup,
    LineValidation,
    CartValidation,
)
from cartsync.inventory._validate import validate_line, validate_cart

__all__ = (
    "LineReason",
    "StockFact",
    "StockLookup",
    "LineValidation",
    "CartValidation",
    "validate_line",
    "validate_cart",
)
