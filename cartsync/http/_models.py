"""
HTTP models — pydantic request/response bodies.

Requests convert themselves with to_domain(), responses are built with
from_domain(). Field names are camelCase on the wire.
"""

from __future__ import annotations

from decimal import Decimal

from kungfu import Error, Ok, Result
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cartsync._types import PaymentMethod, to_money
from cartsync.cart import Cart, CartLine, merge, variant_of
from cartsync.checkout import (
    CheckoutBlocked,
    CheckoutDeps,
    CheckoutSession,
    CustomerInfo,
    Notice,
    PaymentProof,
    SubmissionFailure,
    SubmissionReceipt,
)
from cartsync.inventory import LineValidation
from cartsync.pricing import PricingResult
from cartsync.quote import Quote, QuoteRequest


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════


class CartLineIn(_Model):
    product_id: str = Field(min_length=1)
    variant_key: str | None = None
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Decimal(0)
    currency: str = ""
    title: str = ""

    def to_domain(self) -> CartLine:
        return CartLine(
            product_id=self.product_id,
            variant_key=variant_of(self.variant_key),
            quantity=self.quantity,
            unit_price=to_money(self.unit_price),
            currency=self.currency.strip().upper(),
            title=self.title,
        )


class CustomerIn(_Model):
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

    def to_domain(self) -> CustomerInfo:
        return CustomerInfo(**self.model_dump(by_alias=False))


class PaymentProofIn(_Model):
    sender_number: str = ""
    transaction_id: str = ""

    def to_domain(self) -> PaymentProof:
        return PaymentProof(sender_number=self.sender_number, transaction_id=self.transaction_id)


class _CartIn(_Model):
    items: list[CartLineIn] = []

    def cart(self, deps: CheckoutDeps) -> Cart:
        return Cart(merge(item.to_domain() for item in self.items))


class QuoteIn(_CartIn):
    coupon_code: str | None = None
    destination: str = ""
    country: str = "Bangladesh"
    payment_method: PaymentMethod = PaymentMethod.COD
    email: str | None = None

    def to_domain(self, deps: CheckoutDeps) -> QuoteRequest:
        return QuoteRequest(
            cart=self.cart(deps),
            stock_lookup=deps.stock_lookup,
            coupon_lookup=deps.coupon_lookup,
            rate_table=deps.rate_table,
            coupon_code=self.coupon_code,
            destination=self.destination,
            country=self.country,
            payment_method=self.payment_method,
            conversion_rates=deps.conversion_rates,
            config=deps.config,
            clock=deps.clock,
            identity=self.email.strip().lower() if self.email else None,
            usage_lookup=deps.usage_lookup,
        )


class CouponIn(QuoteIn):
    coupon_code: str = Field(min_length=1)


class SubmitIn(_CartIn):
    customer: CustomerIn = CustomerIn()
    payment_method: PaymentMethod = PaymentMethod.COD
    payment_proof: PaymentProofIn | None = None
    coupon_code: str | None = None
    accepted_terms: bool = False
    order_id: str | None = None

    def to_domain(self, deps: CheckoutDeps) -> CheckoutSession:
        session = CheckoutSession(
            deps,
            self.cart(deps),
            customer_info=self.customer.to_domain(),
            payment_method=self.payment_method,
            order_id=self.order_id,
        )
        if self.payment_proof is not None:
            session.set_payment_proof(self.payment_proof.to_domain())
        session.accept_terms(self.accepted_terms)
        return session


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class CartLineOut(_Model):
    product_id: str
    variant_key: str
    quantity: int
    unit_price: Decimal
    currency: str
    title: str

    @classmethod
    def from_domain(cls, line: CartLine) -> CartLineOut:
        return cls(
            product_id=line.product_id,
            variant_key=line.variant_key,
            quantity=line.quantity,
            unit_price=line.unit_price,
            currency=line.currency,
            title=line.title,
        )


class PricingOut(_Model):
    subtotal: Decimal
    discount: Decimal
    shipping_charge: Decimal
    payable: Decimal

    @classmethod
    def from_domain(cls, pricing: PricingResult) -> PricingOut:
        return cls(
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            shipping_charge=pricing.shipping_charge,
            payable=pricing.payable,
        )


class CorrectionOut(_Model):
    product_id: str
    variant_key: str
    reason: str
    requested_quantity: int
    corrected_quantity: int
    message: str

    @classmethod
    def from_domain(cls, v: LineValidation) -> CorrectionOut:
        return cls(
            product_id=v.line.product_id,
            variant_key=v.line.variant_key,
            reason=v.reason.value if v.reason is not None else "",
            requested_quantity=v.line.quantity,
            corrected_quantity=v.corrected_quantity,
            message=v.message or "",
        )


class CouponOut(_Model):
    code: str
    applied: bool
    discount: Decimal = Decimal(0)
    reason: str | None = None
    message: str | None = None


class QuoteOut(_Model):
    cart: list[CartLineOut]
    pricing: PricingOut
    coupon: CouponOut | None = None
    corrections: list[CorrectionOut] = []
    messages: list[str] = []
    blocked: bool = False

    @classmethod
    def from_domain(cls, quote: Quote) -> QuoteOut:
        coupon: CouponOut | None = None
        if quote.coupon is not None:
            coupon = CouponOut(code=quote.coupon.code, applied=True, discount=quote.pricing.discount)
        elif quote.coupon_rejection is not None:
            rejected = quote.coupon_rejection
            coupon = CouponOut(
                code=rejected.code,
                applied=False,
                reason=rejected.reason.value,
                message=rejected.message,
            )
        return cls(
            cart=[CartLineOut.from_domain(line) for line in quote.cart],
            pricing=PricingOut.from_domain(quote.pricing),
            coupon=coupon,
            corrections=[CorrectionOut.from_domain(v) for v in quote.validation.corrections],
            messages=list(quote.messages),
            blocked=quote.blocked,
        )


class NoticeOut(_Model):
    code: str
    message: str
    product_id: str | None = None
    level: str = "error"

    @classmethod
    def from_domain(cls, notice: Notice) -> NoticeOut:
        return cls(
            code=notice.code.value,
            message=notice.message,
            product_id=notice.product_id,
            level=notice.level,
        )


class SubmitOut(_Model):
    status: str
    order_id: str | None = None
    cart: list[CartLineOut]
    pricing: PricingOut
    notices: list[NoticeOut] = []
    failure: str | None = None
    clear_cart: bool = False
    from_cache: bool = False

    @classmethod
    def from_domain(
        cls,
        session: CheckoutSession,
        result: Result[SubmissionReceipt, CheckoutBlocked | SubmissionFailure],
        extra: tuple[Notice, ...] = (),
    ) -> SubmitOut:
        base = {
            "status": session.status.value,
            "order_id": session.order_id,
            "cart": [CartLineOut.from_domain(line) for line in session.cart],
            "pricing": PricingOut.from_domain(session.pricing()),
        }
        match result:
            case Ok(receipt):
                return cls(
                    **base,
                    notices=[NoticeOut.from_domain(n) for n in (*extra, *session.notices)],
                    clear_cart=receipt.clear_cart,
                    from_cache=receipt.from_cache,
                )
            case Error(CheckoutBlocked(notices=notices)):
                return cls(**base, notices=[NoticeOut.from_domain(n) for n in (*extra, *notices)])
            case Error(failure):
                return cls(
                    **base,
                    notices=[NoticeOut.from_domain(n) for n in extra],
                    failure=failure.kind.value,
                )


__all__ = (
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
