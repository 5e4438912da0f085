from decimal import Decimal

import pytest

from cartsync import UnknownCurrency
from cartsync.cart import Cart, NO_VARIANT, set_quantity
from cartsync.config import EngineConfig
from cartsync.pricing import price, to_base
from tests.conftest import make_line


def test_foreign_lines_are_converted_to_base():
    cart = Cart.from_lines([make_line("P1", 2, price=10, currency="USD"), make_line("P2", 1, price=300)])

    result = price(cart)

    assert result.subtotal == Decimal("2700.00")
    assert result.payable == Decimal("2700.00")


def test_explicit_rates_override_config():
    cart = Cart.from_lines([make_line("P1", 1, price=10, currency="USD")])

    assert price(cart, conversion_rates={"USD": Decimal("110")}).subtotal == Decimal("1100.00")


def test_empty_currency_is_base():
    assert to_base(Decimal(5), "") == Decimal(5)


def test_unknown_currency_raises():
    cart = Cart.from_lines([make_line("P1", 1, price=10, currency="EUR")])

    with pytest.raises(UnknownCurrency) as info:
        price(cart)
    assert info.value.currency == "EUR"


def test_configured_rate_is_used():
    config = EngineConfig().with_rates(USD=120, EUR=130)
    cart = Cart.from_lines([make_line("P1", 1, price=1, currency="EUR")])

    assert price(cart, config=config).subtotal == Decimal("130.00")


def test_discount_is_clamped_to_subtotal():
    cart = Cart.from_lines([make_line("P1", 1, price=500)])

    result = price(cart, Decimal(800), Decimal(60))

    assert result.discount == Decimal("500.00")
    assert result.payable == Decimal("60.00")


@pytest.mark.parametrize("shipping", [Decimal(-5), Decimal("NaN"), None, "abc"])
def test_bad_shipping_counts_as_zero(shipping: object):
    cart = Cart.from_lines([make_line("P1", 1, price=100)])

    result = price(cart, 0, shipping)

    assert result.shipping_charge == Decimal("0.00")
    assert result.payable == Decimal("100.00")


def test_rounding_happens_once():
    cart = Cart.from_lines(
        [make_line("A", 1, price="0.005"), make_line("B", 1, price="0.005"), make_line("C", 1, price="0.005")]
    )

    # Per-line rounding would give 0.03
    assert price(cart).subtotal == Decimal("0.02")


def test_more_units_never_lower_payable():
    cart = Cart.from_lines([make_line("P1", 1, price=200), make_line("P2", 1, price=50)])
    before = price(cart, Decimal(100), Decimal(60))

    after = price(set_quantity(cart, "P1", NO_VARIANT, 2), Decimal(100), Decimal(60))

    assert after.payable >= before.payable


def test_bigger_discount_never_raises_payable():
    cart = Cart.from_lines([make_line("P1", 2, price=200)])

    payables = [price(cart, Decimal(d), Decimal(60)).payable for d in (0, 50, 400, 1000)]

    assert payables == sorted(payables, reverse=True)


def test_subtotal_is_stable_across_rebuilds():
    cart = Cart.from_lines([make_line("P1", 3, price="19.99", currency="USD"), make_line("P2", 2, price=75)])
    first = price(cart)

    rebuilt = Cart.from_payload(cart.to_payload())

    assert price(rebuilt).subtotal == first.subtotal


def test_to_dict_uses_wire_names():
    cart = Cart.from_lines([make_line("P1", 1, price=100)])

    assert price(cart, 10, 60).to_dict() == {
        "subtotal": "100.00",
        "discount": "10.00",
        "shippingCharge": "60.00",
        "payable": "150.00",
    }
