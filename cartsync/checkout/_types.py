"""
Checkout types — session state, order payload and submission outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Protocol

from cartsync._types import PaymentMethod
from cartsync.pricing import PricingResult


# ═══════════════════════════════════════════════════════════════════════════════
# Status
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutStatus(Enum):
    """
    BUILDING → VALIDATING → AWAITING_PAYMENT_DETAILS → AWAITING_TERMS_ACCEPTANCE
             → SUBMITTING → SUCCEEDED | FAILED
    """

    BUILDING = "building"
    VALIDATING = "validating"
    AWAITING_PAYMENT_DETAILS = "awaiting_payment_details"
    AWAITING_TERMS_ACCEPTANCE = "awaiting_terms_acceptance"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_editable(self) -> bool:
        return self not in (CheckoutStatus.SUBMITTING, CheckoutStatus.SUCCEEDED)


# ═══════════════════════════════════════════════════════════════════════════════
# Customer & Payment
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CustomerInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    country: str = "Bangladesh"
    district: str = ""
    thana: str = ""
    city: str = ""
    postcode: str = ""
    notes: str = ""

    @property
    def identity(self) -> str | None:
        """Who a one-time coupon is tracked against."""
        return self.email.strip().lower() or self.phone.strip() or None

    @property
    def destination(self) -> str:
        """Region name used for the shipping bucket."""
        return self.district or self.city

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "country": self.country,
            "district": self.district,
            "thana": self.thana,
            "city": self.city,
            "postcode": self.postcode,
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class PaymentProof:
    """Mobile-wallet prepayment reference typed in by the customer."""

    sender_number: str = ""
    transaction_id: str = ""


# ═══════════════════════════════════════════════════════════════════════════════
# Notices
# ═══════════════════════════════════════════════════════════════════════════════


class NoticeCode(Enum):
    STOCK_CORRECTED = "STOCK_CORRECTED"
    LOOKUP_FAILED = "LOOKUP_FAILED"
    COUPON_DROPPED = "COUPON_DROPPED"
    CUSTOMER_INFO = "CUSTOMER_INFO"
    PAYMENT_PROOF = "PAYMENT_PROOF"
    TERMS_NOT_ACCEPTED = "TERMS_NOT_ACCEPTED"
    EMPTY_CART = "EMPTY_CART"
    COUPON_USAGE_NOT_RECORDED = "COUPON_USAGE_NOT_RECORDED"


@dataclass(frozen=True, slots=True)
class Notice:
    """One user-facing message, tied to a product when it is about one."""

    code: NoticeCode
    message: str
    product_id: str | None = None
    level: Literal["error", "warning", "info"] = "error"


# ═══════════════════════════════════════════════════════════════════════════════
# Order Payload
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderLine:
    product_id: str
    title: str
    quantity: int
    unit_price: Decimal
    variant_key: str | None


@dataclass(frozen=True, slots=True)
class OrderPayload:
    """Immutable snapshot handed to the order gateway. Prices are in base currency."""

    order_id: str
    lines: tuple[OrderLine, ...]
    customer: CustomerInfo
    payment_method: PaymentMethod
    payment_proof: PaymentProof | None
    status: Literal["pending", "pending_payment"]
    pricing: PricingResult
    coupon_code: str | None
    terms_accepted_at: datetime

    def to_dict(self) -> dict[str, Any]:
        customer: dict[str, Any] = self.customer.to_dict()
        if self.payment_proof is not None:
            customer["senderNumber"] = self.payment_proof.sender_number
            customer["transactionId"] = self.payment_proof.transaction_id
        return {
            "orderId": self.order_id,
            "products": [
                {
                    "productId": line.product_id,
                    "title": line.title,
                    "quantity": line.quantity,
                    "price": str(line.unit_price),
                    "size": line.variant_key,
                }
                for line in self.lines
            ],
            "customerInfo": customer,
            "paymentMethod": self.payment_method.value,
            "status": self.status,
            "subtotal": str(self.pricing.subtotal),
            "discount": str(self.pricing.discount),
            "shippingCharge": str(self.pricing.shipping_charge),
            "total": str(self.pricing.payable),
            "couponCode": self.coupon_code,
            "acceptedTerms": True,
            "termsAcceptedAt": self.terms_accepted_at.isoformat(),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Outcomes
# ═══════════════════════════════════════════════════════════════════════════════


class FailureKind(Enum):
    CREATE_ORDER_FAILED = "CREATE_ORDER_FAILED"
    CONFLICT = "CONFLICT"
    STORE_ERROR = "STORE_ERROR"


@dataclass(frozen=True, slots=True)
class SubmissionFailure:
    kind: FailureKind
    message: str
    order_id: str


@dataclass(frozen=True, slots=True)
class CheckoutBlocked:
    """submit() stopped before the gateway was called; status says where."""

    status: CheckoutStatus
    notices: tuple[Notice, ...]


@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    """
    The order went through.

    clear_cart tells the caller to drop the client-held cart. warnings are
    best-effort follow-ups that failed without undoing the order.
    """

    order_id: str
    payload: OrderPayload
    warnings: tuple[Notice, ...] = ()
    clear_cart: bool = True
    from_cache: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway
# ═══════════════════════════════════════════════════════════════════════════════


class OrderGateway(Protocol):
    """Order persistence, outside the engine."""

    async def create_order(self, payload: OrderPayload) -> str:
        """Persist and return the order id. Raises on failure."""
        ...

    async def record_coupon_usage(self, code: str, customer: CustomerInfo) -> None:
        """Best-effort; a failure never undoes the order."""
        ...


__all__ = (
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
)
