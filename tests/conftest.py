"""Pytest bootstrap configuration.

Shared stubs implementing the application ports, plus entity factories.
"""
import asyncio
import os
from decimal import Decimal
from typing import Optional

os.environ.setdefault("ENVIRONMENT", "test")

import pytest

from application.dtos.payments import (
    RedirectOutcome,
    RedirectPayload,
    SeamlessPayload,
    StatusResult,
    OpaqueSuccessOutcome,
)
from application.ports.payment_gateway import PaymentDirectory, PurchaseGateway
from core.settings import PaymentSettings
from domain.common.exceptions import DirectoryUnavailableException, UnauthenticatedException
from domain.payment.entity import Currency, PaymentMethod, RequiredField
from domain.purchase.entity import PurchaseRecord


def _currency(code: str, *, default: bool = False, active: bool = True) -> Currency:
    return Currency(code=code, name=code, default_currency=default, active=active)


def _method(
    id: str = "1",
    *,
    code: str = "PZW211",
    name: str = "EcoCash",
    active: bool = True,
    redirect: bool = False,
    currencies: tuple = ("USD",),
    required: tuple = ("customerPhoneNumber",),
    optional: tuple = (),
    minimum: str = "0",
    maximum: str = "0",
) -> PaymentMethod:
    fields = tuple(RequiredField(name=n, display_name=n) for n in required)
    fields += tuple(RequiredField(name=n, display_name=n, optional=True) for n in optional)
    return PaymentMethod(
        id=id,
        code=code,
        name=name,
        active=active,
        redirect_required=redirect,
        minimum_amount=Decimal(minimum),
        maximum_amount=Decimal(maximum),
        currencies=currencies,
        required_fields=fields,
    )


class StubDirectory(PaymentDirectory):
    def __init__(self, currencies=None, methods=None):
        self.currencies = list(currencies or [])
        self.methods = dict(methods or {})
        self.method_calls: list[str] = []
        self.fail_currencies = False
        self.fail_methods = False

    async def list_active_currencies(self) -> list[Currency]:
        if self.fail_currencies:
            raise DirectoryUnavailableException("currencies", status_code=500)
        return list(self.currencies)

    async def list_methods_for(self, currency_code: str) -> list[PaymentMethod]:
        self.method_calls.append(currency_code)
        if self.fail_methods:
            raise DirectoryUnavailableException("payment methods", status_code=500)
        return list(self.methods.get(currency_code, []))


class StubGateway(PurchaseGateway):
    def __init__(self):
        self.redirect_url: Optional[str] = "https://pay.example/redirect/abc"
        self.seamless_outcome = OpaqueSuccessOutcome(raw={})
        self.statuses: dict = {}
        self.poll_result = None
        self.purchases: Optional[list[PurchaseRecord]] = []
        self.calls: list[tuple] = []
        # When set, status queries wait on it (lets tests hold a query in flight)
        self.gate: Optional[asyncio.Event] = None

    async def submit_redirect(self, payload: RedirectPayload) -> RedirectOutcome:
        self.calls.append(("redirect", payload))
        return RedirectOutcome(redirect_url=self.redirect_url, raw={"redirectUrl": self.redirect_url})

    async def submit_seamless(self, payload: SeamlessPayload):
        self.calls.append(("seamless", payload))
        return self.seamless_outcome

    async def _answer(self, result):
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(result, Exception):
            raise result
        return result

    async def query_status(self, reference_number: str) -> StatusResult:
        self.calls.append(("status", reference_number))
        return await self._answer(self.statuses[reference_number])

    async def poll_status(self) -> StatusResult:
        self.calls.append(("poll",))
        return await self._answer(self.poll_result)

    async def list_purchases(self) -> list[PurchaseRecord]:
        self.calls.append(("purchases",))
        if self.purchases is None:
            raise UnauthenticatedException()
        return list(self.purchases)


@pytest.fixture
def make_currency():
    return _currency


@pytest.fixture
def make_method():
    return _method


@pytest.fixture
def status_result():
    return StatusResult.from_wire


@pytest.fixture
def stub_directory():
    return StubDirectory(
        currencies=[_currency("ZWG", default=True), _currency("USD")],
        methods={
            "USD": [
                _method("1", code="PZW211", name="EcoCash"),
                _method("2", code="PZW215", name="Visa", redirect=True, required=()),
            ],
            "ZWG": [_method("3", code="PZW201", name="OneMoney", currencies=("ZWG",))],
        },
    )


@pytest.fixture
def stub_gateway():
    return StubGateway()


@pytest.fixture
def payment_settings():
    return PaymentSettings(retry={"max": 1, "base_backoff": 0.0})
