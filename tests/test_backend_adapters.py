import json

import httpx
import pytest

from booking_engine.application.exceptions import GatewayError, ValidationError
from booking_engine.domain.entities.pricing import CoinConfig, FeeConfig, WalletState
from booking_engine.infrastructure.backend.api_client import BackendApiClient
from booking_engine.infrastructure.backend.http_config_store import HttpConfigStore
from booking_engine.infrastructure.backend.http_coupon_service import HttpCouponService
from booking_engine.infrastructure.backend.http_payment_gateway import HttpPaymentGateway
from booking_engine.infrastructure.backend.http_wallet_ledger import HttpWalletLedger


def _client(handler) -> BackendApiClient:
    transport = httpx.MockTransport(handler)
    return BackendApiClient(
        base_url="http://backend.test/api",
        api_token="token123",
        client=httpx.Client(transport=transport),
    )


def _routes(routes: dict[tuple[str, str], httpx.Response], seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return routes[(request.method, request.url.path)]

    return handler


def test_coupon_validation_success():
    seen = []
    body = {
        "valid": True,
        "message": "Coupon is valid",
        "coupon": {"code": "SAVE20", "type": "percentage", "value": 20, "discountAmount": 60, "_id": "c9"},
    }
    service = HttpCouponService(_client(_routes({("POST", "/api/coupons/validate"): httpx.Response(200, json=body)}, seen)))

    result = service.validate("SAVE20", 300)

    assert result.valid
    assert result.discount_amount == 60
    assert result.coupon_id == "c9"
    assert json.loads(seen[0].content) == {"code": "SAVE20", "orderAmount": 300}
    assert seen[0].headers["Authorization"] == "Bearer token123"


def test_coupon_rejection_keeps_backend_reason():
    body = {"valid": False, "message": "Coupon has expired or not yet valid"}
    service = HttpCouponService(_client(_routes({("POST", "/api/coupons/validate"): httpx.Response(400, json=body)})))

    result = service.validate("OLD", 300)

    assert not result.valid
    assert result.reason == "Coupon has expired or not yet valid"


def test_coupon_service_outage_is_validation_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ValidationError, match="Could not validate coupon"):
        HttpCouponService(_client(handler)).validate("SAVE20", 300)
    with pytest.raises(ValidationError):
        HttpCouponService(_client(lambda r: httpx.Response(503))).validate("SAVE20", 300)


def test_wallet_balance_and_fallback():
    ledger = HttpWalletLedger(_client(_routes({("GET", "/api/wallet/"): httpx.Response(200, json={"balance": 120.5, "ycCoins": 40})})))
    assert ledger.balance() == WalletState(balance=120.5, coin_balance=40)

    broken = HttpWalletLedger(_client(lambda r: httpx.Response(500)))
    assert broken.balance() == WalletState()


def test_fee_and_coin_config():
    routes = {
        ("GET", "/api/admin/fees"): httpx.Response(200, json={"platformFee": 25, "travelChargePerKm": 10, "isActive": True}),
        ("GET", "/api/coins/config"): httpx.Response(200, json={"coinToRupeeRate": 0.5, "maxUsagePercentage": 30}),
    }
    store = HttpConfigStore(_client(_routes(routes)))
    assert store.fee_config() == FeeConfig(is_active=True, platform_fee=25, travel_charge_per_km=10)
    assert store.coin_config() == CoinConfig(coin_to_rupee_rate=0.5, max_usage_percentage=30)


def test_config_fallbacks_when_unavailable_or_invalid():
    routes = {
        ("GET", "/api/admin/fees"): httpx.Response(502),
        ("GET", "/api/coins/config"): httpx.Response(200, json={"coinToRupeeRate": 0, "maxUsagePercentage": 30}),
    }
    store = HttpConfigStore(_client(_routes(routes)))
    assert store.fee_config() == FeeConfig(is_active=False)
    assert store.coin_config() == CoinConfig(coin_to_rupee_rate=1.0, max_usage_percentage=50.0)


def test_payment_order_sent_in_major_units():
    seen = []
    routes = {("POST", "/api/payment/order"): httpx.Response(200, json={"id": "order_1", "amount": 52550, "currency": "INR"})}
    gateway = HttpPaymentGateway(_client(_routes(routes, seen)))

    order = gateway.create_order(52550, "INR")

    assert order.order_id == "order_1"
    assert order.amount_minor == 52550
    assert json.loads(seen[0].content) == {"amount": 525.5, "currency": "INR"}


def test_payment_order_amount_mismatch_rejected():
    routes = {("POST", "/api/payment/order"): httpx.Response(200, json={"id": "order_1", "amount": 100, "currency": "INR"})}
    with pytest.raises(GatewayError):
        HttpPaymentGateway(_client(_routes(routes))).create_order(52550, "INR")


def test_payment_order_failure_is_gateway_error():
    with pytest.raises(GatewayError, match="Failed to initiate payment"):
        HttpPaymentGateway(_client(lambda r: httpx.Response(500))).create_order(100, "INR")


def test_payment_verification():
    seen = []
    ok = HttpPaymentGateway(
        _client(_routes({("POST", "/api/payment/verify"): httpx.Response(200, json={"success": True, "paymentId": "pay_1"})}, seen))
    )
    assert ok.verify("order_1", "pay_1", "sig") is True
    assert json.loads(seen[0].content) == {
        "razorpay_order_id": "order_1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": "sig",
    }

    bad = HttpPaymentGateway(
        _client(_routes({("POST", "/api/payment/verify"): httpx.Response(400, json={"success": False, "message": "Invalid signature"})}))
    )
    assert bad.verify("order_1", "pay_1", "forged") is False

    with pytest.raises(GatewayError):
        HttpPaymentGateway(_client(lambda r: httpx.Response(503))).verify("order_1", "pay_1", "sig")
