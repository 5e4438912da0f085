"""
Exceptions — programming and configuration errors only.

Stock drift, coupon invalidity and submission failures are values
(see LineValidation, CouponRejected, SubmissionFailure), never raised.
"""

from __future__ import annotations


class CartsyncError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class UnknownCurrency(CartsyncError):
    """No conversion rate to the base currency."""

    def __init__(self, currency: str) -> None:
        super().__init__("UNKNOWN_CURRENCY", f"No conversion rate for currency {currency!r}")
        self.currency = currency


class InvalidTransition(CartsyncError):
    """Checkout session asked to do something its current state forbids."""

    def __init__(self, status: str, action: str) -> None:
        super().__init__("INVALID_TRANSITION", f"Cannot {action} while checkout is {status}")
        self.status = status
        self.action = action


__all__ = ("CartsyncError", "UnknownCurrency", "InvalidTransition")
