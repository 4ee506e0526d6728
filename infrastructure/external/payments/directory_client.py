"""
Payments-engine directory adapter: active currencies and payment methods per currency.

The directory is public (no credential). Listings are idempotent GETs, so
transport errors and transient 5xx answers are retried with backoff.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from application.dtos.payments import CurrencyDTO, PaymentMethodDTO
from application.ports.payment_gateway import PaymentDirectory
from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from domain.common.exceptions import DirectoryUnavailableException
from domain.payment.entity import Currency, PaymentMethod
from infrastructure.external.api_clients.base import APIError
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import directory_error_from


logger = get_logger(__name__)


class PesepayDirectoryClient(BasePaymentClient, PaymentDirectory):
    provider = "pesepay"

    def __init__(
        self,
        *,
        settings: Optional[PaymentSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            (settings or payment_settings).directory.base_url,
            settings=settings,
            transport=transport,
        )

    async def _list(self, resource: str, endpoint: str, params: Optional[dict[str, Any]] = None) -> list[Any]:
        try:
            resp = await self.get(endpoint, params=params, retry=True)
        except APIError as exc:
            self._log("directory_list_failed", resource=resource, status_code=exc.status_code, error=exc.message)
            raise directory_error_from(resource, exc) from exc

        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, list):
            self._log("directory_list_malformed", resource=resource, body_type=type(data).__name__)
            raise DirectoryUnavailableException(resource, status_code=resp.status_code, reason="malformed listing")
        return data

    async def list_active_currencies(self) -> list[Currency]:
        rows = await self._list("currencies", "/currencies/active")
        currencies: list[Currency] = []
        for row in rows:
            try:
                currency = CurrencyDTO.model_validate(row).to_entity()
            except ValidationError:
                logger.warning("currency_row_skipped", row=row)
                continue
            if currency.active:
                currencies.append(currency)
        self._log("currencies_listed", count=len(currencies))
        return currencies

    async def list_methods_for(self, currency_code: str) -> list[PaymentMethod]:
        code = (currency_code or "").strip().upper()
        rows = await self._list(
            "payment methods",
            "/payment-methods/for-currency",
            params={"currencyCode": code},
        )
        methods: list[PaymentMethod] = []
        for row in rows:
            try:
                method = PaymentMethodDTO.model_validate(row).to_entity()
            except ValidationError:
                logger.warning("payment_method_row_skipped", row=row)
                continue
            if method.is_available_for(code):
                methods.append(method)
        self._log("payment_methods_listed", currency=code, count=len(methods))
        return methods
