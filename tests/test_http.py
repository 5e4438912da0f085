from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from cartsync.cart import NO_VARIANT
from cartsync.coupon import GlobalCoupon
from cartsync.http import create_app
from tests.conftest import CUSTOMER, FakeCoupons, FakeGateway, FakeStock, make_deps

FLAT200 = GlobalCoupon(code="FLAT200", discount_amount=Decimal(200), min_cart_total=Decimal(1000))

CUSTOMER_JSON = {
    "name": CUSTOMER.name,
    "email": CUSTOMER.email,
    "phone": CUSTOMER.phone,
    "address": CUSTOMER.address,
    "country": CUSTOMER.country,
    "district": CUSTOMER.district,
    "thana": CUSTOMER.thana,
}


def _items(*lines: tuple[str, str | None, int, int]) -> list[dict]:
    return [
        {"productId": pid, "variantKey": size, "quantity": qty, "unitPrice": str(unit), "currency": "BDT"}
        for pid, size, qty, unit in lines
    ]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(gateway: FakeGateway):
    stock = FakeStock({("P1", "M"): 1, ("P2", NO_VARIANT): 5})
    app = create_app(make_deps(stock, gateway, coupon_lookup=FakeCoupons(FLAT200)))
    with TestClient(app) as c:
        yield c


def test_quote_returns_the_corrected_cart(client: TestClient):
    response = client.post(
        "/cart/quote",
        json={
            "items": _items(("P1", "M", 2, 500), ("P2", None, 1, 1000)),
            "couponCode": "FLAT200",
            "destination": "Dhaka",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert [(line["productId"], line["quantity"]) for line in body["cart"]] == [("P1", 1), ("P2", 1)]
    assert body["corrections"][0]["reason"] == "INSUFFICIENT_STOCK"
    assert body["coupon"]["applied"] is True
    assert Decimal(body["pricing"]["payable"]) == Decimal("1360")
    assert body["blocked"] is False


def test_rejected_coupon_is_reported(client: TestClient):
    response = client.post(
        "/cart/coupon",
        json={"items": _items(("P2", None, 1, 900)), "couponCode": "FLAT200"},
    )

    assert response.status_code == 200
    coupon = response.json()["coupon"]
    assert coupon["applied"] is False
    assert coupon["reason"] == "BELOW_MINIMUM"


def test_coupon_route_needs_a_code(client: TestClient):
    response = client.post("/cart/coupon", json={"items": []})

    assert response.status_code == 422


def test_submit_places_the_order_once(client: TestClient, gateway: FakeGateway):
    body = {
        "items": _items(("P2", None, 2, 600)),
        "customer": CUSTOMER_JSON,
        "paymentMethod": "cod",
        "couponCode": "FLAT200",
        "acceptedTerms": True,
        "orderId": "ORDER_HTTP00001",
    }

    first = client.post("/checkout/submit", json=body)
    second = client.post("/checkout/submit", json=body)

    assert first.status_code == 201
    placed = first.json()
    assert placed["status"] == "succeeded"
    assert placed["orderId"] == "ORDER_HTTP00001"
    assert placed["clearCart"] is True
    assert Decimal(placed["pricing"]["payable"]) == Decimal("1060")
    assert second.status_code == 201
    assert second.json()["fromCache"] is True
    assert len(gateway.created) == 1


def test_submit_blocked_by_stock_correction(client: TestClient, gateway: FakeGateway):
    response = client.post(
        "/checkout/submit",
        json={
            "items": _items(("P1", "M", 3, 500)),
            "customer": CUSTOMER_JSON,
            "acceptedTerms": True,
        },
    )

    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "building"
    assert [n["code"] for n in body["notices"]] == ["STOCK_CORRECTED"]
    assert body["cart"][0]["quantity"] == 1
    assert gateway.created == []


def test_submit_without_terms(client: TestClient):
    response = client.post(
        "/checkout/submit",
        json={"items": _items(("P2", None, 1, 100)), "customer": CUSTOMER_JSON},
    )

    assert response.status_code == 422
    assert response.json()["status"] == "awaiting_terms_acceptance"


def test_dropped_coupon_is_a_warning(client: TestClient):
    response = client.post(
        "/checkout/submit",
        json={
            "items": _items(("P2", None, 1, 100)),
            "customer": CUSTOMER_JSON,
            "couponCode": "FLAT200",
            "acceptedTerms": True,
        },
    )

    assert response.status_code == 201
    notices = response.json()["notices"]
    assert notices[0]["code"] == "COUPON_DROPPED"
    assert notices[0]["level"] == "warning"


def test_gateway_failure_is_bad_gateway(client: TestClient, gateway: FakeGateway):
    gateway.fail = True

    response = client.post(
        "/checkout/submit",
        json={"items": _items(("P2", None, 1, 100)), "customer": CUSTOMER_JSON, "acceptedTerms": True},
    )

    assert response.status_code == 502
    assert response.json()["failure"] == "CREATE_ORDER_FAILED"
    assert response.json()["status"] == "failed"


def test_unknown_currency_is_unprocessable(client: TestClient):
    items = _items(("P2", None, 1, 100))
    items[0]["currency"] = "EUR"

    response = client.post(
        "/checkout/submit",
        json={"items": items, "customer": CUSTOMER_JSON, "acceptedTerms": True},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "UNKNOWN_CURRENCY"


def test_unknown_payment_method_is_rejected(client: TestClient):
    response = client.post(
        "/checkout/submit",
        json={"items": _items(("P2", None, 1, 100)), "customer": CUSTOMER_JSON, "paymentMethod": "paypal"},
    )

    assert response.status_code == 422


def test_zero_quantity_is_rejected(client: TestClient):
    response = client.post("/cart/quote", json={"items": _items(("P2", None, 0, 100))})

    assert response.status_code == 422


def test_over_cap_quantity_is_corrected_and_reported(client: TestClient):
    response = client.post("/cart/quote", json={"items": _items(("P2", None, 5, 100))})

    assert response.status_code == 200
    body = response.json()
    assert body["corrections"][0]["reason"] == "MAX_EXCEEDED"
    assert body["cart"][0]["quantity"] == 3
