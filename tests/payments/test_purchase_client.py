import json
from decimal import Decimal

import httpx
import pytest

from application.dtos.payments import (
    AlbumDetailsPayload,
    InstructionalOutcome,
    PollableOutcome,
    RedirectPayload,
    SeamlessPayload,
    ShippingDetailsPayload,
)
from domain.common.exceptions import GatewayException, GatewayUnreachableException, UnauthenticatedException
from domain.payment.entity import PurchaseStatus
from infrastructure.adapters.credentials import StaticCredentialProvider
from infrastructure.external.payments.purchase_client import PlaquePaymentsClient


BASE = "http://purchases.test/api/payments"


def _redirect_payload() -> RedirectPayload:
    return RedirectPayload(
        album_id="a1",
        plaque_type="Gold",
        amount=Decimal("30"),
        phone="+263771234567",
        currency_code="USD",
        album_details=AlbumDetailsPayload(name="Album", artist="Artist"),
    )


def _seamless_payload() -> SeamlessPayload:
    return SeamlessPayload(
        **_redirect_payload().model_dump(),
        payment_method_code="PZW211",
        required_fields={"customerPhoneNumber": "+263771234567"},
        shipping_details=ShippingDetailsPayload(include_shipping=False),
    )


def _client(handler, payment_settings, token="tok-123") -> PlaquePaymentsClient:
    payment_settings.purchases.base_url = BASE
    return PlaquePaymentsClient(
        StaticCredentialProvider(token),
        settings=payment_settings,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_redirect_submission_sends_camel_case_json_with_bearer(payment_settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["content_type"] = request.headers.get("Content-Type")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"redirectUrl": "https://pay.example/r/1"})

    client = _client(handler, payment_settings)
    outcome = await client.submit_redirect(_redirect_payload())
    await client.aclose()

    assert outcome.redirect_url == "https://pay.example/r/1"
    assert seen["url"] == f"{BASE}/purchase-redirect"
    assert seen["auth"] == "Bearer tok-123"
    assert seen["content_type"] == "application/json"
    assert seen["body"]["albumId"] == "a1"
    assert seen["body"]["amount"] == 30.0
    assert "paymentMethodCode" not in seen["body"]


@pytest.mark.asyncio
async def test_redirect_without_url_is_gateway_error(payment_settings):
    client = _client(lambda request: httpx.Response(200, json={"ok": True}), payment_settings)
    with pytest.raises(GatewayException) as exc_info:
        await client.submit_redirect(_redirect_payload())
    assert exc_info.value.message == "No redirect URL received"


@pytest.mark.asyncio
async def test_seamless_instructions_outcome(payment_settings):
    def handler(request):
        return httpx.Response(200, json={"paymentInstructions": "Dial *151#", "referenceNumber": "R1"})

    outcome = await _client(handler, payment_settings).submit_seamless(_seamless_payload())
    assert isinstance(outcome, InstructionalOutcome)


@pytest.mark.asyncio
async def test_seamless_reference_outcome(payment_settings):
    outcome = await _client(
        lambda request: httpx.Response(200, json={"referenceNumber": "R1"}), payment_settings
    ).submit_seamless(_seamless_payload())
    assert isinstance(outcome, PollableOutcome)
    assert outcome.reference_number == "R1"


@pytest.mark.asyncio
async def test_upstream_message_is_carried_and_submission_not_retried(payment_settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, json={"message": "Gateway busy"})

    with pytest.raises(GatewayException) as exc_info:
        await _client(handler, payment_settings).submit_seamless(_seamless_payload())

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "Gateway busy"
    assert exc_info.value.details["retryable"] is True
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_non_json_error_uses_default_message(payment_settings):
    client = _client(lambda request: httpx.Response(400, text="bad"), payment_settings)
    with pytest.raises(GatewayException) as exc_info:
        await client.submit_seamless(_seamless_payload())
    assert exc_info.value.message == GatewayException.DEFAULT_MESSAGE


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [httpx.ConnectTimeout, httpx.ConnectError])
async def test_timeout_and_connection_failure_are_unreachable(payment_settings, error):
    def handler(request):
        raise error("down", request=request)

    with pytest.raises(GatewayUnreachableException):
        await _client(handler, payment_settings).query_status("R1")


@pytest.mark.asyncio
async def test_status_query_path_and_parsing(payment_settings):
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={"success": True, "status": "Paid", "paid": True})

    result = await _client(handler, payment_settings).query_status("R-77")
    assert seen == ["/api/payments/status/R-77"]
    assert result.status is PurchaseStatus.PAID
    assert result.paid is True


@pytest.mark.asyncio
async def test_poll_status_endpoint(payment_settings):
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={"status": "pending"})

    result = await _client(handler, payment_settings).poll_status()
    assert seen == ["/api/payments/poll-status"]
    assert result.status is PurchaseStatus.PENDING


@pytest.mark.asyncio
async def test_list_purchases_without_credential_never_calls_out(payment_settings):
    calls = []
    client = _client(lambda request: calls.append(request) or httpx.Response(200, json=[]), payment_settings, token=None)
    with pytest.raises(UnauthenticatedException):
        await client.list_purchases()
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("wrap", [
    lambda rows: rows,
    lambda rows: {"data": rows},
    lambda rows: {"success": True, "data": rows},
])
async def test_list_purchases_accepts_all_envelopes(payment_settings, wrap):
    rows = [
        {
            "_id": "g1",
            "album": {"_id": "alb1", "title": "Album"},
            "amount": 10,
            "status": "paid",
            "pollurl": "https://poll/1",
            "reason": 'Plaque for "Album" by Jah Prayzah"',
            "coverNote": "kept",
        },
        {"id": "p2", "albumId": "alb2"},
    ]

    records = await _client(lambda request: httpx.Response(200, json=wrap(rows)), payment_settings).list_purchases()

    first, second = records
    assert first.id == "g1" and first.gateway_id == "g1"
    assert first.album_id == "alb1"
    assert first.status is PurchaseStatus.PAID
    assert first.poll_url == "https://poll/1"
    assert first.artist == "Jah Prayzah"
    assert first.extra == {"coverNote": "kept"}
    assert second.id == "p2" and second.gateway_id is None
    assert second.album_id == "alb2"
    assert second.plaque_type == "Plaque"
    assert second.amount == Decimal("0")
    assert second.currency == "USD"
    assert second.status is PurchaseStatus.PENDING
    assert second.paid is False
