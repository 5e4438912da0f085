"""
Inventory types — stock facts and validation outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from cartsync.cart import Cart, CartLine


class LineReason(Enum):
    MAX_EXCEEDED = "MAX_EXCEEDED"
    UNAVAILABLE = "UNAVAILABLE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    LOOKUP_FAILED = "LOOKUP_FAILED"


@dataclass(frozen=True, slots=True)
class StockFact:
    """
    Authoritative stock for one product (or one size of it).

    Fetched per validation call. Never cached: a stale fact is exactly the
    drift validation exists to catch.
    """

    product_id: str
    available_quantity: int
    product_title: str = ""
    variant_key: str | None = None


class StockLookup(Protocol):
    """
    Server-side stock source.

    Returns None when the product no longer exists or the size is not
    offered. May raise; a raised exception marks the line LOOKUP_FAILED.
    """

    async def __call__(self, product_id: str, variant_key: str) -> StockFact | None: ...


@dataclass(frozen=True, slots=True)
class LineValidation:
    line: CartLine
    valid: bool
    corrected_quantity: int
    reason: LineReason | None = None
    message: str | None = None

    @property
    def changed(self) -> bool:
        return self.corrected_quantity != self.line.quantity

    @property
    def removed(self) -> bool:
        return self.corrected_quantity == 0


@dataclass(frozen=True, slots=True)
class CartValidation:
    """
    Result of checking every line.

    per_line follows the cart's order. corrected_cart has every correction
    applied: removed lines dropped, quantities lowered.
    """

    all_valid: bool
    corrected_cart: Cart
    per_line: tuple[LineValidation, ...]

    @property
    def corrections(self) -> tuple[LineValidation, ...]:
        return tuple(v for v in self.per_line if not v.valid)

    @property
    def has_lookup_failures(self) -> bool:
        return any(v.reason is LineReason.LOOKUP_FAILED for v in self.per_line)

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(v.message for v in self.per_line if v.message)


__all__ = (
    "LineReason",
    "StockFact",
    "StockLookup",
    "LineValidation",
    "CartValidation",
)
