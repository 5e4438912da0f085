from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from kungfu import Error, Ok

from cartsync.cart import Cart, NO_VARIANT, remove_line, set_quantity
from cartsync.coupon import (
    CouponContext,
    CouponSlot,
    GlobalCoupon,
    ProductCoupon,
    RejectReason,
    resolve,
)
from cartsync.pricing import price
from tests.conftest import NOW, FakeCoupons, FakeUsage, expect_error, expect_ok, fixed_clock, make_line

TEN_OFF_P1 = ProductCoupon(code="P1TEN", product_id="P1", discount_percentage=Decimal(10))
TWO_HUNDRED_OFF = GlobalCoupon(code="FLAT200", discount_amount=Decimal(200), min_cart_total=Decimal(1000))


@pytest.mark.asyncio
async def test_product_coupon_discounts_one_unit():
    cart = Cart.from_lines([make_line("P1", 2, price=1000)])

    result = await resolve("P1TEN", cart, FakeCoupons(TEN_OFF_P1), Decimal(2000), NOW)

    match result:
        case Ok(applied):
            assert applied.discount == Decimal(100)
            assert applied.code == "P1TEN"
        case Error(rejected):
            pytest.fail(f"unexpected rejection: {rejected}")


@pytest.mark.asyncio
async def test_product_coupon_uses_base_currency_price():
    cart = Cart.from_lines([make_line("P1", 1, price=10, currency="USD")])

    result = await resolve("P1TEN", cart, FakeCoupons(TEN_OFF_P1), Decimal(1200), NOW)

    assert expect_ok(result).discount == Decimal(120)


@pytest.mark.asyncio
async def test_global_coupon_below_minimum():
    cart = Cart.from_lines([make_line("P2", 1, price=900)])

    result = await resolve("FLAT200", cart, FakeCoupons(TWO_HUNDRED_OFF), Decimal(900), NOW)

    match result:
        case Error(rejected):
            assert rejected.reason is RejectReason.BELOW_MINIMUM
        case Ok(_):
            pytest.fail("coupon should not apply below the minimum")


@pytest.mark.asyncio
async def test_global_coupon_at_minimum():
    cart = Cart.from_lines([make_line("P2", 1, price=1000)])

    result = await resolve("FLAT200", cart, FakeCoupons(TWO_HUNDRED_OFF), Decimal(1000), NOW)

    assert expect_ok(result).discount == Decimal(200)


@pytest.mark.asyncio
async def test_global_discount_never_exceeds_cart_total():
    big = GlobalCoupon(code="BIG", discount_amount=Decimal(5000), min_cart_total=Decimal(0))
    cart = Cart.from_lines([make_line("P2", 1, price=300)])

    result = await resolve("BIG", cart, FakeCoupons(big), Decimal(300), NOW)

    assert expect_ok(result).discount == Decimal(300)


@pytest.mark.asyncio
async def test_unknown_code():
    result = await resolve("NOPE", Cart(), FakeCoupons(), Decimal(0), NOW)

    assert isinstance(result, Error)
    assert expect_error(result).reason is RejectReason.NOT_FOUND


@pytest.mark.asyncio
async def test_code_is_trimmed_and_upper_cased():
    coupons = FakeCoupons(TEN_OFF_P1)
    cart = Cart.from_lines([make_line("P1", 1, price=1000)])

    await resolve("  p1ten ", cart, coupons, Decimal(1000), NOW)

    assert coupons.calls == ["P1TEN"]


@pytest.mark.asyncio
async def test_expiry_is_checked_before_type_rules():
    expired = ProductCoupon(
        code="OLD", product_id="P9", discount_percentage=Decimal(10), expires_at=NOW - timedelta(days=1)
    )

    result = await resolve("OLD", Cart(), FakeCoupons(expired), Decimal(0), NOW)

    assert expect_error(result).reason is RejectReason.EXPIRED


@pytest.mark.asyncio
async def test_coupon_expiring_right_now_still_applies():
    edge = GlobalCoupon(code="EDGE", discount_amount=Decimal(10), min_cart_total=Decimal(0), expires_at=NOW)
    cart = Cart.from_lines([make_line("P2", 1, price=100)])

    result = await resolve("EDGE", cart, FakeCoupons(edge), Decimal(100), NOW)

    assert isinstance(result, Ok)


@pytest.mark.asyncio
async def test_naive_expiry_is_read_as_utc():
    # Stores without timezone support hand back naive datetimes
    later = GlobalCoupon(
        code="LATER", discount_amount=Decimal(10), min_cart_total=Decimal(0), expires_at=datetime(2030, 1, 1)
    )
    gone = GlobalCoupon(
        code="GONE", discount_amount=Decimal(10), min_cart_total=Decimal(0), expires_at=datetime(2020, 1, 1)
    )
    cart = Cart.from_lines([make_line("P2", 1, price=100)])
    coupons = FakeCoupons(later, gone)

    applied = expect_ok(await resolve("LATER", cart, coupons, Decimal(100), NOW))
    rejected = expect_error(await resolve("GONE", cart, coupons, Decimal(100), NOW))

    assert applied.discount == Decimal(10)
    assert rejected.reason is RejectReason.EXPIRED


@pytest.mark.asyncio
async def test_product_not_in_cart():
    cart = Cart.from_lines([make_line("P2", 1, price=1000)])

    result = await resolve("P1TEN", cart, FakeCoupons(TEN_OFF_P1), Decimal(1000), NOW)

    assert expect_error(result).reason is RejectReason.PRODUCT_NOT_IN_CART


@pytest.mark.asyncio
async def test_lookup_failure_is_a_rejection():
    result = await resolve("P1TEN", Cart(), FakeCoupons(failing=True), Decimal(0), NOW)

    assert expect_error(result).reason is RejectReason.LOOKUP_FAILED


@pytest.mark.asyncio
async def test_one_time_coupon_already_used():
    once = ProductCoupon(code="ONCE", product_id="P1", discount_percentage=Decimal(20), one_time=True)
    cart = Cart.from_lines([make_line("P1", 1, price=500)])
    usage = FakeUsage({("ONCE", "rahim@example.com")})

    used = await resolve(
        "ONCE", cart, FakeCoupons(once), Decimal(500), NOW, identity="rahim@example.com", usage_lookup=usage
    )
    fresh = await resolve(
        "ONCE", cart, FakeCoupons(once), Decimal(500), NOW, identity="karim@example.com", usage_lookup=usage
    )

    assert expect_error(used).reason is RejectReason.ALREADY_USED
    assert expect_ok(fresh).discount == Decimal(100)


@pytest.mark.asyncio
@pytest.mark.parametrize("percentage", [0, 35, 100, 150, -20])
async def test_discount_is_bounded_by_subtotal(percentage: int):
    coupon = ProductCoupon(code="PCT", product_id="P1", discount_percentage=Decimal(percentage))
    cart = Cart.from_lines([make_line("P1", 1, price="99.99"), make_line("P2", 2, price=10)])
    subtotal = price(cart).subtotal

    applied = expect_ok(await resolve("PCT", cart, FakeCoupons(coupon), subtotal, NOW))

    assert Decimal(0) <= applied.discount <= subtotal


# ═══════════════════════════════════════════════════════════════════════════════
# CouponSlot
# ═══════════════════════════════════════════════════════════════════════════════


def _ctx(*coupons) -> CouponContext:
    return CouponContext(lookup=FakeCoupons(*coupons), clock=fixed_clock)


@pytest.mark.asyncio
async def test_applying_a_second_coupon_replaces_the_first():
    cart = Cart.from_lines([make_line("P1", 1, price=1500)])
    ctx = _ctx(TEN_OFF_P1, TWO_HUNDRED_OFF)

    slot, _ = await CouponSlot().apply("P1TEN", cart, ctx)
    slot, outcome = await slot.apply("FLAT200", cart, ctx)

    assert isinstance(outcome, Ok)
    assert slot.code == "FLAT200"
    assert slot.discount == Decimal(200)


@pytest.mark.asyncio
async def test_rejected_code_clears_the_slot():
    cart = Cart.from_lines([make_line("P1", 1, price=500)])
    ctx = _ctx(TEN_OFF_P1, TWO_HUNDRED_OFF)

    slot, _ = await CouponSlot().apply("P1TEN", cart, ctx)
    slot, outcome = await slot.apply("FLAT200", cart, ctx)

    assert isinstance(outcome, Error)
    assert slot.applied is None
    assert slot.discount == Decimal(0)


@pytest.mark.asyncio
async def test_revalidate_drops_coupon_when_product_leaves_cart():
    cart = Cart.from_lines([make_line("P1", 1, price=500), make_line("P2", 1, price=500)])
    ctx = _ctx(TEN_OFF_P1)
    slot, _ = await CouponSlot().apply("P1TEN", cart, ctx)

    slot, dropped = await slot.revalidate(remove_line(cart, "P1"), ctx)

    assert dropped is not None
    assert dropped.reason is RejectReason.PRODUCT_NOT_IN_CART
    assert slot.applied is None


@pytest.mark.asyncio
async def test_revalidate_drops_global_coupon_below_minimum():
    cart = Cart.from_lines([make_line("P2", 2, price=600)])
    ctx = _ctx(TWO_HUNDRED_OFF)
    slot, _ = await CouponSlot().apply("FLAT200", cart, ctx)

    slot, dropped = await slot.revalidate(set_quantity(cart, "P2", NO_VARIANT, 1), ctx)

    assert dropped.reason is RejectReason.BELOW_MINIMUM
    assert slot.discount == Decimal(0)


@pytest.mark.asyncio
async def test_revalidate_keeps_coupon_that_still_holds():
    cart = Cart.from_lines([make_line("P1", 1, price=500), make_line("P2", 1, price=500)])
    ctx = _ctx(TEN_OFF_P1)
    slot, _ = await CouponSlot().apply("P1TEN", cart, ctx)

    slot, dropped = await slot.revalidate(remove_line(cart, "P2"), ctx)

    assert dropped is None
    assert slot.code == "P1TEN"


@pytest.mark.asyncio
async def test_empty_slot_revalidates_to_itself():
    slot = CouponSlot()

    assert await slot.revalidate(Cart(), _ctx()) == (slot, None)
