import json

import httpx
import pytest

from src.domain.exceptions import GatewayError
from src.infrastructure.gateway.chapa import ChapaGateway, CheckoutRequest


def _request() -> CheckoutRequest:
    return CheckoutRequest(
        amount=1500.0,
        currency="ETB",
        email="client@example.com",
        tx_ref="payment-p1-abc",
        callback_url="http://localhost:8000/api/client/payment/verify",
        return_url="http://localhost:5173/dashboard/payment/status?tx_ref=payment-p1-abc&payment_id=p1",
        split={"type": "percentage", "subaccounts": []},
        first_name="Hanna",
        last_name="Girma",
        title="Payment for Photography",
    )


def _gateway(handler) -> ChapaGateway:
    return ChapaGateway(
        secret_key="CHASECK_TEST-key",
        base_url="https://api.chapa.test/v1/",
        transport=httpx.MockTransport(handler),
    )


def test_initialize_posts_payload_and_returns_checkout_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"status": "success", "data": {"checkout_url": "https://checkout.chapa.co/abc"}},
        )

    session = _gateway(handler).initialize_transaction(_request())

    assert session.checkout_url == "https://checkout.chapa.co/abc"
    assert seen["method"] == "POST"
    assert seen["url"] == "https://api.chapa.test/v1/transaction/initialize"
    assert seen["auth"] == "Bearer CHASECK_TEST-key"
    assert seen["body"]["amount"] == "1500.0"
    assert seen["body"]["tx_ref"] == "payment-p1-abc"
    assert seen["body"]["split"]["type"] == "percentage"


def test_initialize_without_checkout_url_raises():
    gateway = _gateway(lambda request: httpx.Response(200, json={"status": "success", "data": {}}))
    with pytest.raises(GatewayError):
        gateway.initialize_transaction(_request())


def test_error_status_raises_gateway_error():
    gateway = _gateway(lambda request: httpx.Response(400, json={"message": "Invalid subaccount"}))
    with pytest.raises(GatewayError):
        gateway.initialize_transaction(_request())


def test_transport_failure_raises_gateway_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(GatewayError):
        _gateway(handler).verify_transaction("payment-p1-abc")


def test_verify_returns_status_and_data():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/transaction/verify/payment-p1-abc"
        return httpx.Response(200, json={"status": "success", "data": {"amount": "1500"}})

    verification = _gateway(handler).verify_transaction("payment-p1-abc")
    assert verification.status == "success"
    assert verification.data == {"amount": "1500"}


def test_non_json_body_raises_gateway_error():
    gateway = _gateway(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(GatewayError):
        gateway.verify_transaction("payment-p1-abc")


def test_verify_keeps_reference_inside_verify_path():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path)
        return httpx.Response(200, json={"status": "failed", "data": None})

    _gateway(handler).verify_transaction("../../banks")

    assert seen == [b"/v1/transaction/verify/..%2F..%2Fbanks"]


@pytest.mark.parametrize("tx_ref", ["", ".", ".."])
def test_verify_rejects_dot_segment_references(tx_ref):
    calls = []
    gateway = _gateway(lambda request: calls.append(request) or httpx.Response(200, json={}))

    with pytest.raises(GatewayError):
        gateway.verify_transaction(tx_ref)
    assert calls == []


@pytest.mark.parametrize("body", [[{"checkout_url": "https://checkout.chapa.co/abc"}], "ok", 7])
def test_non_object_body_raises_gateway_error(body):
    gateway = _gateway(lambda request: httpx.Response(200, json=body))

    with pytest.raises(GatewayError):
        gateway.initialize_transaction(_request())
    with pytest.raises(GatewayError):
        gateway.verify_transaction("payment-p1-abc")


def test_initialize_with_list_data_raises():
    gateway = _gateway(
        lambda request: httpx.Response(200, json={"status": "success", "data": ["https://checkout.chapa.co/abc"]})
    )
    with pytest.raises(GatewayError):
        gateway.initialize_transaction(_request())


def test_verify_passes_through_non_object_data():
    gateway = _gateway(lambda request: httpx.Response(200, json={"status": 1, "data": [{"amount": "1500"}]}))

    verification = gateway.verify_transaction("payment-p1-abc")

    assert verification.status == 1
    assert verification.data == [{"amount": "1500"}]
