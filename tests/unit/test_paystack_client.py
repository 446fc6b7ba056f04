"""Unit tests for the Paystack client against a mocked transport."""

import hashlib
import hmac
import json

import httpx
import pytest
from services.store_service.paystack_client import PaystackClient, PaystackError
from tests.factories import make_settings


def make_client(handler, **settings_overrides) -> PaystackClient:
    return PaystackClient(
        make_settings(**settings_overrides), transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_initialize_payment_sends_minor_units():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "status": True,
                "message": "Authorization URL created",
                "data": {
                    "authorization_url": "https://checkout.paystack.com/abc",
                    "access_code": "abc",
                    "reference": "ORD-1-ABCDEFG",
                },
            },
        )

    client = make_client(handler)
    result = await client.initialize_payment(
        email="ama@example.com",
        amount_minor_units=12000,
        reference="ORD-1-ABCDEFG",
        metadata={"orderId": "o-1"},
    )

    assert seen["url"] == "https://api.paystack.test/transaction/initialize"
    assert seen["auth"] == "Bearer sk_test_boma_secret"
    assert seen["body"] == {
        "email": "ama@example.com",
        "amount": 12000,
        "reference": "ORD-1-ABCDEFG",
        "metadata": {"orderId": "o-1"},
        "callback_url": "http://localhost:3000/checkout/confirmation",
    }
    assert result.authorization_url == "https://checkout.paystack.com/abc"
    assert result.reference == "ORD-1-ABCDEFG"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_amount_must_be_integer():
    client = make_client(lambda request: httpx.Response(500))
    with pytest.raises(TypeError):
        await client.initialize_payment("a@b.com", 120.0, "ORD-1-X")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_verify_payment_parses_transaction():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/transaction/verify/ORD-1-ABCDEFG"
        return httpx.Response(
            200,
            json={
                "status": True,
                "message": "Verification successful",
                "data": {
                    "status": "success",
                    "reference": "ORD-1-ABCDEFG",
                    "amount": 12000,
                    "currency": "GHS",
                    "paid_at": "2026-10-18T10:15:00.000Z",
                    "customer": {"email": "ama@example.com"},
                },
            },
        )

    verification = await make_client(handler).verify_payment("ORD-1-ABCDEFG")

    assert verification.is_success
    assert verification.amount == 12000
    assert verification.paid_at.year == 2026
    assert verification.customer_email == "ama@example.com"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_http_error_raises_paystack_error():
    def handler(request):
        return httpx.Response(400, json={"status": False, "message": "Invalid key"})

    with pytest.raises(PaystackError) as exc_info:
        await make_client(handler).verify_payment("ORD-1-X")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid key"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_status_false_body_raises_paystack_error():
    def handler(request):
        return httpx.Response(200, json={"status": False, "message": "Duplicate"})

    with pytest.raises(PaystackError, match="Duplicate"):
        await make_client(handler).initialize_payment("a@b.com", 100, "ORD-1-X")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_missing_secret_key_raises():
    client = make_client(lambda request: httpx.Response(200), PAYSTACK_SECRET_KEY="")
    with pytest.raises(PaystackError, match="not configured"):
        await client.verify_payment("ORD-1-X")


@pytest.mark.unit
def test_webhook_signature_uses_raw_bytes():
    client = make_client(lambda request: httpx.Response(200))
    raw = b'{"event":"charge.success","data":{"reference":"ORD-1-X"}}'
    good = hmac.new(b"sk_test_boma_secret", raw, hashlib.sha512).hexdigest()

    assert client.verify_webhook_signature(raw, good)
    assert not client.verify_webhook_signature(raw, "0" * 128)
    assert not client.verify_webhook_signature(raw, None)
    # Re-serialized JSON differs byte-for-byte
    reserialized = json.dumps(json.loads(raw)).encode()
    assert not client.verify_webhook_signature(reserialized, good)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_reference_is_reported_as_not_found():
    def handler(request):
        return httpx.Response(
            400, json={"status": False, "message": "Transaction reference not found"}
        )

    with pytest.raises(PaystackError) as exc_info:
        await make_client(handler).verify_payment("ORD-1-GONE")
    assert exc_info.value.is_reference_not_found


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(503, json={"status": False}),
        lambda request: httpx.Response(502, text="Bad Gateway"),
        lambda request: httpx.Response(
            401, json={"status": False, "message": "Invalid key"}
        ),
        lambda request: httpx.Response(
            400, json={"status": False, "message": "Invalid key"}
        ),
    ],
)
async def test_gateway_failures_are_not_not_found(handler):
    with pytest.raises(PaystackError) as exc_info:
        await make_client(handler).verify_payment("ORD-1-X")
    assert not exc_info.value.is_reference_not_found


@pytest.mark.asyncio
@pytest.mark.unit
async def test_transport_error_is_not_not_found():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PaystackError) as exc_info:
        await make_client(handler).verify_payment("ORD-1-X")
    assert exc_info.value.status_code is None
    assert not exc_info.value.is_reference_not_found
