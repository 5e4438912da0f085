from decimal import Decimal

import pytest

from cartsync.cart import Cart, NO_VARIANT
from cartsync.config import EngineConfig
from cartsync.coupon import GlobalCoupon, ProductCoupon, RejectReason
from cartsync.inventory import LineReason
from cartsync.quote import QuoteRequest, build_quote
from tests.conftest import RATES, FakeCoupons, FakeStock, fixed_clock, make_line

FLAT200 = GlobalCoupon(code="FLAT200", discount_amount=Decimal(200), min_cart_total=Decimal(1000))


def _request(cart: Cart, stock: FakeStock, **kw: object) -> QuoteRequest:
    kw.setdefault("rate_table", RATES)
    kw.setdefault("clock", fixed_clock)
    return QuoteRequest(cart=cart, stock_lookup=stock, **kw)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_quote_corrects_stock_and_prices_the_result():
    cart = Cart.from_lines([make_line("P1", 2, price=500, variant="M"), make_line("P2", 1, price=1000)])
    stock = FakeStock({("P1", "M"): 1, ("P2", NO_VARIANT): 5})

    quote = await build_quote(
        _request(cart, stock, coupon_lookup=FakeCoupons(FLAT200), coupon_code="FLAT200", destination="Dhaka")
    )

    assert [(line.product_id, line.quantity) for line in quote.cart] == [("P1", 1), ("P2", 1)]
    assert quote.changed
    assert quote.coupon is not None
    assert quote.pricing.subtotal == Decimal("1500.00")
    assert quote.pricing.discount == Decimal("200.00")
    assert quote.pricing.shipping_charge == Decimal("60.00")
    assert quote.pricing.payable == Decimal("1360.00")
    assert quote.validation.per_line[0].reason is LineReason.INSUFFICIENT_STOCK


@pytest.mark.asyncio
async def test_coupon_falls_away_when_its_product_is_removed():
    coupon = ProductCoupon(code="P1TEN", product_id="P1", discount_percentage=Decimal(10))
    cart = Cart.from_lines([make_line("P1", 1, price=500), make_line("P2", 1, price=400)])
    stock = FakeStock({("P2", NO_VARIANT): 5})

    quote = await build_quote(_request(cart, stock, coupon_lookup=FakeCoupons(coupon), coupon_code="P1TEN"))

    assert quote.coupon is None
    assert quote.coupon_rejection is not None
    assert quote.coupon_rejection.reason is RejectReason.PRODUCT_NOT_IN_CART
    assert quote.pricing.discount == Decimal("0.00")
    assert len(quote.messages) == 2


@pytest.mark.asyncio
async def test_duplicates_are_merged_before_validation():
    cart = Cart(lines=(make_line("P2", 1), make_line("P2", 1)))
    stock = FakeStock({("P2", NO_VARIANT): 5})

    quote = await build_quote(_request(cart, stock))

    assert [(line.product_id, line.quantity) for line in quote.cart] == [("P2", 2)]
    assert stock.calls == [("P2", NO_VARIANT)]
    assert quote.validation.all_valid


@pytest.mark.asyncio
async def test_lookup_failure_blocks_by_default():
    cart = Cart.from_lines([make_line("P1", 1)])
    stock = FakeStock(failing={"P1"})

    quote = await build_quote(_request(cart, stock))

    assert quote.blocked
    assert quote.cart.lines[0].quantity == 1
    assert quote.messages == ("Could not confirm stock for P1, please try again",)


@pytest.mark.asyncio
async def test_lookup_failure_can_be_tolerated():
    config = EngineConfig().with_lookup_failure_blocking(False)
    cart = Cart.from_lines([make_line("P1", 1)])

    quote = await build_quote(_request(cart, FakeStock(failing={"P1"}), config=config))

    assert not quote.blocked


@pytest.mark.asyncio
async def test_non_delivery_method_pays_no_shipping():
    cart = Cart.from_lines([make_line("P2", 1, price=300)])
    stock = FakeStock({("P2", NO_VARIANT): 5})

    quote = await build_quote(
        _request(cart, stock, destination="Dhaka", payment_method="affiliate_redirect")
    )

    assert quote.pricing.shipping_charge == Decimal("0.00")
    assert quote.pricing.payable == Decimal("300.00")


@pytest.mark.asyncio
async def test_foreign_country_pays_no_shipping():
    cart = Cart.from_lines([make_line("P2", 1, price=300)])
    stock = FakeStock({("P2", NO_VARIANT): 5})

    quote = await build_quote(_request(cart, stock, destination="Dhaka", country="India"))

    assert quote.pricing.shipping_charge == Decimal("0.00")


@pytest.mark.asyncio
async def test_empty_cart_quotes_to_zero():
    quote = await build_quote(_request(Cart(), FakeStock(), destination="Sylhet"))

    assert quote.cart.is_empty
    assert quote.pricing.subtotal == Decimal("0.00")
    assert not quote.changed


@pytest.mark.asyncio
async def test_over_cap_line_is_reported_and_capped():
    stock = FakeStock({("P2", NO_VARIANT): 5})

    quote = await build_quote(_request(Cart(lines=(make_line("P2", 5),)), stock))

    assert [(line.product_id, line.quantity) for line in quote.cart] == [("P2", 3)]
    assert quote.changed
    assert quote.validation.per_line[0].reason is LineReason.MAX_EXCEEDED
    assert stock.calls == []


@pytest.mark.asyncio
async def test_merged_duplicates_over_the_cap_are_reported():
    cart = Cart(lines=(make_line("P2", 2), make_line("P2", 2)))

    quote = await build_quote(_request(cart, FakeStock({("P2", NO_VARIANT): 5})))

    assert [(line.product_id, line.quantity) for line in quote.cart] == [("P2", 3)]
    assert quote.validation.per_line[0].reason is LineReason.MAX_EXCEEDED
