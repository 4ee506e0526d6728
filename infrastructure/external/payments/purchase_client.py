"""
Purchases-service adapter: purchase submission, status queries and the purchases listing.

Submissions and status queries are never retried automatically: a purchase
POST is not idempotent and polling is user- or timer-initiated.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from application.dtos.payments import (
    RedirectOutcome,
    RedirectPayload,
    SeamlessOutcome,
    SeamlessPayload,
    StatusResult,
    parse_seamless_response,
)
from application.ports.payment_gateway import CredentialProvider, PurchaseGateway
from core.settings import PaymentSettings, payment_settings
from domain.common.exceptions import GatewayException, UnauthenticatedException
from domain.purchase.entity import PurchaseRecord
from infrastructure.external.api_clients.base import APIError, APIResponse
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import gateway_error_from
from infrastructure.external.payments.mappers import purchase_record_from_wire, unwrap_listing


def _body(resp: APIResponse) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


class PlaquePaymentsClient(BasePaymentClient, PurchaseGateway):
    provider = "plaque-payments"

    def __init__(
        self,
        credentials: Optional[CredentialProvider] = None,
        *,
        settings: Optional[PaymentSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            (settings or payment_settings).purchases.base_url,
            settings=settings,
            transport=transport,
        )
        self._credentials = credentials

    def _auth_headers(self) -> dict[str, str]:
        token = self._credentials.current_credential() if self._credentials else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _call(self, method: str, endpoint: str, **kwargs: Any) -> APIResponse:
        try:
            return await self._request(method, endpoint, headers=self._auth_headers(), retry=False, **kwargs)
        except APIError as exc:
            self._log(
                "purchase_gateway_call_failed",
                method=method,
                endpoint=endpoint,
                status_code=exc.status_code,
                error=exc.message,
            )
            raise gateway_error_from(exc) from exc

    async def submit_redirect(self, payload: RedirectPayload) -> RedirectOutcome:
        resp = await self._call("POST", "/purchase-redirect", json_data=payload.to_wire())
        body = _body(resp)
        redirect_url = body.get("redirectUrl") if isinstance(body, dict) else None
        if not redirect_url:
            raise GatewayException(resp.status_code, "No redirect URL received")
        self._log("purchase_redirect_accepted", album_id=payload.album_id)
        return RedirectOutcome(redirect_url=str(redirect_url), raw=body)

    async def submit_seamless(self, payload: SeamlessPayload) -> SeamlessOutcome:
        resp = await self._call("POST", "/purchase-seamless", json_data=payload.to_wire())
        outcome = parse_seamless_response(_body(resp))
        self._log(
            "purchase_seamless_accepted",
            album_id=payload.album_id,
            method=payload.payment_method_code,
            outcome=outcome.kind,
        )
        return outcome

    async def query_status(self, reference_number: str) -> StatusResult:
        resp = await self._call("GET", f"/status/{reference_number}")
        return StatusResult.from_wire(_body(resp))

    async def poll_status(self) -> StatusResult:
        resp = await self._call("GET", "/poll-status")
        return StatusResult.from_wire(_body(resp))

    async def list_purchases(self) -> list[PurchaseRecord]:
        if not self._auth_headers():
            raise UnauthenticatedException()
        resp = await self._call("GET", "/purchases")
        rows = unwrap_listing(_body(resp))
        records = [purchase_record_from_wire(row) for row in rows if isinstance(row, dict)]
        self._log("purchases_listed", count=len(records))
        return records
