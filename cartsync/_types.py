"""
Core types for cartsync.

Re-exports from kungfu + money helpers and the payment-method enum shared by
every stage.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, UTC
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum

# Re-export from kungfu
from kungfu import Result, Ok, Error, Option, Some, Nothing, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

type Money = Decimal
"""Amount in some currency. Never NaN, never negative once it leaves a stage."""

ZERO = Decimal("0")


def to_money(value: object) -> Decimal:
    """
    Coerce anything numeric-looking into a finite Decimal.

    NaN, infinities, None and garbage all become 0.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, bool) or value is None:
        return ZERO
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def non_negative(value: object) -> Decimal:
    """to_money() clamped at zero."""
    return max(ZERO, to_money(value))


def quantize(amount: Decimal, minor_units: int) -> Decimal:
    """Round to the currency's minor unit, half-up."""
    return amount.quantize(Decimal(1).scaleb(-minor_units), rounding=ROUND_HALF_UP)


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Methods
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentMethod(Enum):
    """
    How the customer pays.

    COD, BKASH and PAY_FIRST ship goods and therefore incur shipping.
    AFFILIATE_REDIRECT hands the customer to a partner site.
    """

    COD = "cod"
    BKASH = "bkash"
    PAY_FIRST = "pay_first"
    AFFILIATE_REDIRECT = "affiliate_redirect"

    @classmethod
    def parse(cls, value: PaymentMethod | str) -> PaymentMethod | None:
        """Accept enum members or their wire names; unknown names give None."""
        if isinstance(value, PaymentMethod):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# ═══════════════════════════════════════════════════════════════════════════════
# Time
# ═══════════════════════════════════════════════════════════════════════════════

type Clock = Callable[[], datetime]
"""Injected current_time() for expiry checks and terms stamping."""


def utc_now() -> datetime:
    return datetime.now(UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "Option",
    "Some",
    "Nothing",
    "LazyCoroResult",
    # Money
    "Money",
    "ZERO",
    "to_money",
    "non_negative",
    "quantize",
    # Payment
    "PaymentMethod",
    # Time
    "Clock",
    "utc_now",
)
