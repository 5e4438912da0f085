"""
HTTP — FastAPI surface: quote, coupon apply, checkout submit.

    from cartsync.http import create_app

    app = create_app(deps)
"""

from cartsync.http._app import create_app
from cartsync.http._models import (
    CartLineIn,
    CustomerIn,
    PaymentProofIn,
    QuoteIn,
    CouponIn,
    SubmitIn,
    CartLineOut,
    PricingOut,
    CorrectionOut,
    CouponOut,
    QuoteOut,
    NoticeOut,
    SubmitOut,
)

__all__ = (
    "create_app",
    "CartLineIn",
    "CustomerIn",
    "PaymentProofIn",
    "QuoteIn",
    "CouponIn",
    "SubmitIn",
    "CartLineOut",
    "PricingOut",
    "CorrectionOut",
    "CouponOut",
    "QuoteOut",
    "NoticeOut",
    "SubmitOut",
)
