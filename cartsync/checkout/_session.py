"""
Checkout session — the state machine from an editable cart to a placed order.

    session = CheckoutSession(deps, cart, on_change=push_to_client)
    session.set_customer_info(info)
    session.set_payment_method("bkash")
    session.set_payment_proof(PaymentProof("01712345678", "TX9A8B7C"))
    session.accept_terms()

    match await session.submit():
        case Ok(receipt):
            clear_client_cart()
        case Error(CheckoutBlocked(status=status, notices=notices)):
            show(notices)                 # fix and submit again
        case Error(SubmissionFailure() as failure):
            show(failure.message)         # session.retry() to go back to editing

Never persisted mid-flow: a session lives for one checkout attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from kungfu import Error, Ok, Result

from cartsync._errors import CartsyncError, InvalidTransition
from cartsync._types import Clock, PaymentMethod, quantize, utc_now
from cartsync.cart import (
    Cart,
    CartLine,
    NO_VARIANT,
    add_line,
    change_variant,
    merge,
    remove_line,
    set_quantity,
)
from cartsync.checkout._payment import (
    generate_order_id,
    validate_customer_info,
    validate_payment_proof,
)
from cartsync.checkout._submit import DEFAULT_POLICY, OrderSubmitter
from cartsync.checkout._types import (
    CheckoutBlocked,
    CheckoutStatus,
    CustomerInfo,
    Notice,
    NoticeCode,
    OrderGateway,
    OrderLine,
    OrderPayload,
    PaymentProof,
    SubmissionFailure,
    SubmissionReceipt,
)
from cartsync.config import DEFAULT_CONFIG, EngineConfig
from cartsync.coupon import (
    AppliedCoupon,
    CouponContext,
    CouponLookup,
    CouponRejected,
    CouponSlot,
    UsageLookup,
)
from cartsync.idempotency import MemoryStore, Policy, Store
from cartsync.inventory import CartValidation, LineReason, StockLookup, validate_cart
from cartsync.pricing import ConversionRates, PricingResult, price, unit_price_in_base
from cartsync.quote import Quote, QuoteRequest, build_quote
from cartsync.shipping import RateTable, shipping_charge

logger = logging.getLogger(__name__)

type OnChange = Callable[[Cart], None]

# Methods whose orders are confirmed on placement; the rest wait for payment
PENDING_ON_SUBMIT = frozenset({PaymentMethod.COD, PaymentMethod.BKASH})


@dataclass(frozen=True, slots=True)
class CheckoutDeps:
    """
    Collaborators shared by every session of a storefront.

    idempotency_store is shared too: that is what makes a resubmitted
    order id return its recorded result.
    """

    stock_lookup: StockLookup
    gateway: OrderGateway
    coupon_lookup: CouponLookup | None = None
    usage_lookup: UsageLookup | None = None
    rate_table: RateTable = RateTable()
    conversion_rates: ConversionRates | None = None
    config: EngineConfig = DEFAULT_CONFIG
    clock: Clock = utc_now
    idempotency_store: Store[SubmissionReceipt] = field(default_factory=MemoryStore)
    idempotency_policy: Policy = DEFAULT_POLICY


def _line_notice(validation_reason: LineReason, message: str, product_id: str) -> Notice:
    if validation_reason is LineReason.LOOKUP_FAILED:
        return Notice(NoticeCode.LOOKUP_FAILED, message, product_id=product_id)
    return Notice(NoticeCode.STOCK_CORRECTED, message, product_id=product_id)


def _coupon_notice(rejected: CouponRejected) -> Notice:
    return Notice(NoticeCode.COUPON_DROPPED, rejected.message, level="warning")


class CheckoutSession:
    def __init__(
        self,
        deps: CheckoutDeps,
        cart: Cart | None = None,
        *,
        customer_info: CustomerInfo | None = None,
        payment_method: PaymentMethod | str = PaymentMethod.COD,
        order_id: str | None = None,
        on_change: OnChange | None = None,
    ) -> None:
        self.deps = deps
        self._config = deps.config
        self._cart = Cart(merge((cart or Cart()).lines))
        self.customer_info = customer_info or CustomerInfo()
        self.payment_method = self._parse_method(payment_method)
        self.payment_proof: PaymentProof | None = None
        self.accepted_terms = False
        self.terms_accepted_at: datetime | None = None
        self.status = CheckoutStatus.BUILDING
        self.notices: tuple[Notice, ...] = ()
        self.receipt: SubmissionReceipt | None = None
        self._slot = CouponSlot()
        self._preset_order_id = order_id
        self._order_id = order_id
        self._payload: OrderPayload | None = None
        self._on_change = on_change
        self._submitter = OrderSubmitter(deps.gateway, deps.idempotency_store, deps.idempotency_policy)

    # ═══════════════════════════════════════════════════════════════════════════
    # State
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def applied_coupon(self) -> AppliedCoupon | None:
        return self._slot.applied

    @property
    def order_id(self) -> str | None:
        return self._order_id

    @property
    def destination(self) -> str:
        return self.customer_info.destination

    def _move(self, status: CheckoutStatus) -> None:
        if status is not self.status:
            logger.info("checkout %s → %s", self.status.value, status.value)
        self.status = status

    def _ensure_editable(self, action: str) -> None:
        if not self.status.is_editable:
            raise InvalidTransition(self.status.value, action)

    @staticmethod
    def _parse_method(method: PaymentMethod | str) -> PaymentMethod:
        parsed = PaymentMethod.parse(method)
        if parsed is None:
            raise ValueError(f"unknown payment method: {method!r}")
        return parsed

    def _coupon_context(self) -> CouponContext | None:
        if self.deps.coupon_lookup is None:
            return None
        return CouponContext(
            lookup=self.deps.coupon_lookup,
            clock=self.deps.clock,
            rates=self.deps.conversion_rates,
            config=self._config,
            usage_lookup=self.deps.usage_lookup,
            identity=self.customer_info.identity,
        )

    async def _revalidate_coupon(self) -> Notice | None:
        ctx = self._coupon_context()
        if ctx is None:
            return None
        self._slot, dropped = await self._slot.revalidate(self._cart, ctx)
        return _coupon_notice(dropped) if dropped is not None else None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._cart)

    # ═══════════════════════════════════════════════════════════════════════════
    # Edits (BUILDING)
    # ═══════════════════════════════════════════════════════════════════════════

    async def _cart_changed(self, cart: Cart) -> tuple[Notice, ...]:
        self._cart = cart
        self._move(CheckoutStatus.BUILDING)
        dropped = await self._revalidate_coupon()
        self.notices = (dropped,) if dropped is not None else ()
        self._notify()
        return self.notices

    async def update_cart(self, cart: Cart) -> tuple[Notice, ...]:
        """Replace the whole cart with fresh client state."""
        self._ensure_editable("update the cart")
        return await self._cart_changed(Cart(merge(cart.lines)))

    async def add_line(self, line: CartLine) -> tuple[Notice, ...]:
        self._ensure_editable("add to the cart")
        return await self._cart_changed(add_line(self._cart, line, max_per_line=self._config.max_per_line))

    async def remove_line(self, product_id: str, variant_key: str = NO_VARIANT) -> tuple[Notice, ...]:
        self._ensure_editable("remove from the cart")
        return await self._cart_changed(remove_line(self._cart, product_id, variant_key))

    async def set_quantity(self, product_id: str, variant_key: str, quantity: int) -> tuple[Notice, ...]:
        self._ensure_editable("change a quantity")
        return await self._cart_changed(
            set_quantity(self._cart, product_id, variant_key, quantity, max_per_line=self._config.max_per_line)
        )

    async def change_variant(self, product_id: str, old_variant: str, new_variant: str) -> tuple[Notice, ...]:
        self._ensure_editable("change a size")
        return await self._cart_changed(
            change_variant(
                self._cart, product_id, old_variant, new_variant, max_per_line=self._config.max_per_line
            )
        )

    def set_customer_info(self, info: CustomerInfo) -> None:
        self._ensure_editable("change customer info")
        self.customer_info = info
        self._move(CheckoutStatus.BUILDING)

    def set_payment_method(self, method: PaymentMethod | str) -> None:
        self._ensure_editable("change the payment method")
        self.payment_method = self._parse_method(method)
        self._move(CheckoutStatus.BUILDING)

    def set_payment_proof(self, proof: PaymentProof | None) -> None:
        self._ensure_editable("change payment details")
        self.payment_proof = proof

    def accept_terms(self, accepted: bool = True) -> None:
        """The acceptance time is stamped on submit, not here."""
        self._ensure_editable("accept terms")
        self.accepted_terms = accepted

    async def apply_coupon(self, code: str) -> Result[AppliedCoupon, CouponRejected]:
        """Replace any held coupon. A rejected code leaves no coupon applied."""
        self._ensure_editable("apply a coupon")
        ctx = self._coupon_context()
        if ctx is None:
            raise CartsyncError("NO_COUPON_LOOKUP", "coupons are not configured for this storefront")
        self._slot, outcome = await self._slot.apply(code, self._cart, ctx)
        return outcome

    def remove_coupon(self) -> None:
        self._ensure_editable("remove the coupon")
        self._slot = self._slot.detach()

    # ═══════════════════════════════════════════════════════════════════════════
    # Totals
    # ═══════════════════════════════════════════════════════════════════════════

    def shipping_charge(self) -> Decimal:
        return shipping_charge(
            self.destination,
            self.payment_method,
            self._config.ships_to(self.customer_info.country),
            self.deps.rate_table,
            config=self._config,
        )

    def pricing(self) -> PricingResult:
        return price(
            self._cart,
            self._slot.discount,
            self.shipping_charge(),
            self.deps.conversion_rates,
            config=self._config,
        )

    async def quote(self) -> Quote:
        """Preview: corrected cart and totals, without changing the session."""
        return await build_quote(
            QuoteRequest(
                cart=self._cart,
                stock_lookup=self.deps.stock_lookup,
                coupon_lookup=self.deps.coupon_lookup,
                rate_table=self.deps.rate_table,
                coupon_code=self._slot.code,
                destination=self.destination,
                country=self.customer_info.country,
                payment_method=self.payment_method,
                conversion_rates=self.deps.conversion_rates,
                config=self._config,
                clock=self.deps.clock,
                identity=self.customer_info.identity,
                usage_lookup=self.deps.usage_lookup,
            )
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Submit
    # ═══════════════════════════════════════════════════════════════════════════

    def _block(
        self, status: CheckoutStatus, notices: tuple[Notice, ...]
    ) -> Result[SubmissionReceipt, CheckoutBlocked | SubmissionFailure]:
        self._move(status)
        self.notices = notices
        logger.info("checkout blocked in %s: %s", status.value, [n.code.value for n in notices])
        return Error(CheckoutBlocked(status=status, notices=notices))

    async def _validate_stock(self) -> tuple[CartValidation, tuple[Notice, ...]]:
        validation = await validate_cart(
            self._cart, self.deps.stock_lookup, max_per_line=self._config.max_per_line
        )
        notices = tuple(
            _line_notice(v.reason, v.message or "", v.line.product_id)
            for v in validation.corrections
            if v.reason is not None
        )
        return validation, notices

    def _build_payload(self, order_id: str, terms_at: datetime) -> OrderPayload:
        rates, config = self.deps.conversion_rates, self._config
        lines = tuple(
            OrderLine(
                product_id=line.product_id,
                title=line.title or line.product_id,
                quantity=line.quantity,
                unit_price=quantize(unit_price_in_base(line, rates, config=config), config.minor_units),
                variant_key=line.variant_key if line.has_variant else None,
            )
            for line in self._cart
        )
        method = self.payment_method
        return OrderPayload(
            order_id=order_id,
            lines=lines,
            customer=self.customer_info,
            payment_method=method,
            payment_proof=self.payment_proof if method in config.proof_required_methods else None,
            status="pending" if method in PENDING_ON_SUBMIT else "pending_payment",
            pricing=self.pricing(),
            coupon_code=self._slot.code,
            terms_accepted_at=terms_at,
        )

    async def submit(self) -> Result[SubmissionReceipt, CheckoutBlocked | SubmissionFailure]:
        """
        Walk the state machine as far as the session's data allows.

        Stops with Error(CheckoutBlocked) at the first state that cannot be
        left; the notices say why. Only a fully valid session reaches the
        gateway. Calling again after SUCCEEDED returns the recorded receipt.
        """
        if self.status in (CheckoutStatus.SUBMITTING, CheckoutStatus.SUCCEEDED) and self._payload is not None:
            # Duplicate submit: the order-id guard answers it
            return await self._submitter.submit(self._payload)

        if self._order_id is not None:
            # Placed already, possibly by another session; the cart no longer matters
            recorded = await self._submitter.recorded(self._order_id)
            if recorded is not None:
                self.receipt, self._payload = recorded, recorded.payload
                self._move(CheckoutStatus.SUCCEEDED)
                return Ok(recorded)

        self._move(CheckoutStatus.VALIDATING)

        if self._cart.is_empty:
            return self._block(CheckoutStatus.BUILDING, (Notice(NoticeCode.EMPTY_CART, "Your cart is empty"),))

        validation, stock_notices = await self._validate_stock()
        self._cart = validation.corrected_cart
        dropped = await self._revalidate_coupon()
        coupon_notices = (dropped,) if dropped is not None else ()

        corrected = any(v.reason is not LineReason.LOOKUP_FAILED for v in validation.corrections)
        must_block = corrected or (validation.has_lookup_failures and self._config.block_on_lookup_failure)
        if must_block or self._cart.is_empty:
            if corrected:
                self._notify()
            return self._block(CheckoutStatus.BUILDING, (*stock_notices, *coupon_notices))

        customer_notices = validate_customer_info(self.customer_info, self.payment_method, self._config)
        if customer_notices:
            return self._block(CheckoutStatus.BUILDING, (*stock_notices, *coupon_notices, *customer_notices))

        self._move(CheckoutStatus.AWAITING_PAYMENT_DETAILS)
        proof_notices = validate_payment_proof(self.payment_method, self.payment_proof, self._config)
        if proof_notices:
            return self._block(CheckoutStatus.AWAITING_PAYMENT_DETAILS, proof_notices)

        self._move(CheckoutStatus.AWAITING_TERMS_ACCEPTANCE)
        if not self.accepted_terms:
            return self._block(
                CheckoutStatus.AWAITING_TERMS_ACCEPTANCE,
                (Notice(NoticeCode.TERMS_NOT_ACCEPTED, "Please accept the Terms & Conditions to proceed"),),
            )
        self.terms_accepted_at = self.deps.clock()

        self._move(CheckoutStatus.SUBMITTING)
        self._order_id = self._order_id or generate_order_id(self._config.order_id_prefix)
        self._payload = self._build_payload(self._order_id, self.terms_accepted_at)
        self.notices = (*stock_notices, *coupon_notices)

        outcome = await self._submitter.submit(self._payload)
        match outcome:
            case Ok(receipt):
                self.receipt = receipt
                self._move(CheckoutStatus.SUCCEEDED)
                self.notices = (*self.notices, *receipt.warnings)
                return Ok(receipt)
            case Error(failure):
                self._move(CheckoutStatus.FAILED)
                return Error(failure)

    def retry(self) -> None:
        """Back to editing after a failed submission. Cart and customer info are kept."""
        if self.status is not CheckoutStatus.FAILED:
            raise InvalidTransition(self.status.value, "retry")
        self._payload = None
        self._order_id = self._preset_order_id
        self.terms_accepted_at = None
        self._move(CheckoutStatus.BUILDING)


__all__ = ("CheckoutDeps", "CheckoutSession", "OnChange", "PENDING_ON_SUBMIT")
