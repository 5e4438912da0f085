"""Shared fakes for the engine's external collaborators."""

import asyncio
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from kungfu import Error, Ok

from cartsync.cart import CartLine, NO_VARIANT
from cartsync.checkout import CheckoutDeps, CustomerInfo, OrderPayload
from cartsync.coupon import Coupon
from cartsync.inventory import StockFact
from cartsync.shipping import RateTable

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return NOW


def make_line(
    product_id: str,
    quantity: int = 1,
    price: str | int = 100,
    variant: str = NO_VARIANT,
    currency: str = "BDT",
    title: str = "",
) -> CartLine:
    return CartLine(
        product_id=product_id,
        variant_key=variant,
        quantity=quantity,
        unit_price=Decimal(str(price)),
        currency=currency,
        title=title,
    )


class FakeStock:
    """(product_id, variant_key) → available units; missing key = product gone."""

    def __init__(
        self,
        stock: dict[tuple[str, str], int] | None = None,
        *,
        failing: set[str] | None = None,
        titles: dict[str, str] | None = None,
    ) -> None:
        self.stock = dict(stock or {})
        self.failing = set(failing or ())
        self.titles = dict(titles or {})
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, product_id: str, variant_key: str) -> StockFact | None:
        self.calls.append((product_id, variant_key))
        if product_id in self.failing:
            raise TimeoutError("stock service timed out")
        available = self.stock.get((product_id, variant_key))
        if available is None:
            return None
        return StockFact(
            product_id=product_id,
            available_quantity=available,
            product_title=self.titles.get(product_id, ""),
            variant_key=variant_key,
        )


class FakeCoupons:
    def __init__(self, *coupons: Coupon, failing: bool = False) -> None:
        self.coupons = {c.code: c for c in coupons}
        self.failing = failing
        self.calls: list[str] = []

    async def __call__(self, code: str) -> Coupon | None:
        self.calls.append(code)
        if self.failing:
            raise ConnectionError("coupon service down")
        return self.coupons.get(code)


class FakeUsage:
    def __init__(self, used: set[tuple[str, str]] | None = None) -> None:
        self.used = set(used or ())

    async def __call__(self, code: str, identity: str) -> bool:
        return (code, identity) in self.used


class FakeGateway:
    """
    Records orders. fail / fail_usage make the calls raise; hold parks
    create_order until released.
    """

    def __init__(self, *, fail: bool = False, fail_usage: bool = False, hold: bool = False) -> None:
        self.fail = fail
        self.fail_usage = fail_usage
        self.created: list[OrderPayload] = []
        self.usage: list[tuple[str, str]] = []
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        if not hold:
            self.release.set()

    async def create_order(self, payload: OrderPayload) -> str:
        self.entered.set()
        await self.release.wait()
        if self.fail:
            raise RuntimeError("orders API returned 500")
        self.created.append(payload)
        return payload.order_id

    async def record_coupon_usage(self, code: str, customer: CustomerInfo) -> None:
        if self.fail_usage:
            raise ConnectionError("usage endpoint unreachable")
        self.usage.append((code, customer.email))


RATES = RateTable(metro=Decimal(60), other=Decimal(120))

CUSTOMER = CustomerInfo(
    name="Rahim Uddin",
    email="rahim@example.com",
    phone="01712345678",
    address="House 7, Road 3",
    country="Bangladesh",
    district="Dhaka",
    thana="Gulshan",
)


@pytest.fixture
def stock() -> FakeStock:
    return FakeStock({("P1", "M"): 5, ("P2", NO_VARIANT): 5, ("P3", NO_VARIANT): 5})


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


def make_deps(stock: FakeStock, gateway: FakeGateway, **kw: object) -> CheckoutDeps:
    kw.setdefault("rate_table", RATES)
    kw.setdefault("clock", fixed_clock)
    return CheckoutDeps(stock_lookup=stock, gateway=gateway, **kw)  # type: ignore[arg-type]


def expect_ok(result):
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(f"expected Ok, got Error({e!r})")


def expect_error(result):
    match result:
        case Error(e):
            return e
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")
