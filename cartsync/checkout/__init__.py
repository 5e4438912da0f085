"""
Checkout — validation, payment details, terms and order submission.

    from cartsync import checkout as X

    deps = X.CheckoutDeps(stock_lookup=stock, gateway=orders, coupon_lookup=coupons)
    session = X.CheckoutSession(deps, cart)
    result = await session.submit()
"""

from cartsync.checkout._types import (
    CheckoutStatus,
    CustomerInfo,
    PaymentProof,
    NoticeCode,
    Notice,
    OrderLine,
    OrderPayload,
    FailureKind,
    SubmissionFailure,
    CheckoutBlocked,
    SubmissionReceipt,
    OrderGateway,
)
from cartsync.checkout._payment import (
    validate_customer_info,
    validate_payment_proof,
    generate_order_id,
)
from cartsync.checkout._submit import DEFAULT_POLICY, payload_fingerprint, OrderSubmitter
from cartsync.checkout._session import CheckoutDeps, CheckoutSession, OnChange, PENDING_ON_SUBMIT

__all__ = (
    # Types
    "CheckoutStatus",
    "CustomerInfo",
    "PaymentProof",
    "NoticeCode",
    "Notice",
    "OrderLine",
    "OrderPayload",
    "FailureKind",
    "SubmissionFailure",
    "CheckoutBlocked",
    "SubmissionReceipt",
    "OrderGateway",
    # Checks
    "validate_customer_info",
    "validate_payment_proof",
    "generate_order_id",
    # Submission
    "DEFAULT_POLICY",
    "payload_fingerprint",
    "OrderSubmitter",
    # Session
    "CheckoutDeps",
    "CheckoutSession",
    "OnChange",
    "PENDING_ON_SUBMIT",
)
