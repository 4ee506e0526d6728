import httpx
import pytest

from domain.common.exceptions import DirectoryUnavailableException
from infrastructure.external.payments.directory_client import PesepayDirectoryClient


BASE = "https://directory.test/api/payments-engine/v1"

CURRENCIES = [
    {"id": 1, "code": "usd", "name": "US Dollar", "defaultCurrency": False, "active": True, "rateToDefault": 1},
    {"id": 2, "code": "ZWG", "name": "Zimbabwe Gold", "defaultCurrency": True, "active": True, "rateToDefault": 26.5},
    {"id": 3, "code": "ZAR", "name": "Rand", "defaultCurrency": False, "active": False, "rateToDefault": 18},
]

METHODS = [
    {
        "id": 11,
        "code": "PZW211",
        "name": "EcoCash USD",
        "active": True,
        "redirectRequired": False,
        "minimumAmount": 1,
        "maximumAmount": 500,
        "currencies": ["USD"],
        "requiredFields": [{"name": "customerPhoneNumber", "displayName": "Phone", "optional": False, "fieldType": "STRING"}],
        "processingPaymentMessage": "Check your phone",
    },
    {"id": 12, "code": "PZW215", "name": "Visa", "active": True, "redirectRequired": True, "currencies": ["USD", "ZWG"]},
    {"id": 13, "code": "OFF", "name": "Disabled", "active": False, "currencies": ["USD"]},
    {"id": 14, "code": "ZW", "name": "ZWG only", "active": True, "currencies": ["ZWG"]},
]


def _client(handler, payment_settings) -> PesepayDirectoryClient:
    payment_settings.directory.base_url = BASE
    return PesepayDirectoryClient(settings=payment_settings, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_active_currencies(payment_settings):
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json=CURRENCIES)

    currencies = await _client(handler, payment_settings).list_active_currencies()

    assert seen == ["/api/payments-engine/v1/currencies/active"]
    assert [c.code for c in currencies] == ["USD", "ZWG"]
    assert currencies[1].default_currency is True


@pytest.mark.asyncio
async def test_methods_for_currency_are_filtered(payment_settings):
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json=METHODS)

    methods = await _client(handler, payment_settings).list_methods_for("usd")

    assert seen == [{"currencyCode": "USD"}]
    assert [m.id for m in methods] == ["11", "12"]
    ecocash = methods[0]
    assert ecocash.requires_field("customerPhoneNumber")
    assert ecocash.processing_message == "Check your phone"
    assert str(ecocash.maximum_amount) == "500"


@pytest.mark.asyncio
async def test_transient_errors_are_retried(payment_settings):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, json={"message": "warming up"})
        return httpx.Response(200, json=CURRENCIES)

    currencies = await _client(handler, payment_settings).list_active_currencies()
    assert len(calls) == 2
    assert len(currencies) == 2


@pytest.mark.asyncio
async def test_persistent_failure_is_directory_unavailable(payment_settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"message": "down"})

    with pytest.raises(DirectoryUnavailableException) as exc_info:
        await _client(handler, payment_settings).list_methods_for("USD")

    assert exc_info.value.message == "Failed to load payment methods. Please try again."
    assert exc_info.value.status_code == 500
    assert len(calls) == payment_settings.retry.max + 1


@pytest.mark.asyncio
async def test_network_failure_is_directory_unavailable(payment_settings):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(DirectoryUnavailableException) as exc_info:
        await _client(handler, payment_settings).list_active_currencies()
    assert exc_info.value.details["retryable"] is True


@pytest.mark.asyncio
async def test_non_list_body_is_directory_unavailable(payment_settings):
    with pytest.raises(DirectoryUnavailableException):
        await _client(lambda request: httpx.Response(200, json={"data": []}), payment_settings).list_active_currencies()
