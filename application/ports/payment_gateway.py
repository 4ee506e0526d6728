"""
Payment gateway ports (application/ports) exposing replaceable protocols.

Application depends on these Protocols; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from application.dtos.payments import (
    RedirectOutcome,
    RedirectPayload,
    SeamlessOutcome,
    SeamlessPayload,
    StatusResult,
)
from domain.payment.entity import Currency, PaymentMethod
from domain.purchase.entity import PurchaseRecord


@runtime_checkable
class PaymentDirectory(Protocol):
    """Currency and payment-method discovery.

    Implementations raise DirectoryUnavailableException on transport or HTTP failure.
    """

    async def list_active_currencies(self) -> list[Currency]: ...

    async def list_methods_for(self, currency_code: str) -> list[PaymentMethod]: ...


@runtime_checkable
class PurchaseGateway(Protocol):
    """Purchase submission, status queries and the purchases listing.

    Implementations raise GatewayException for upstream rejections and
    GatewayUnreachableException for transport failures and timeouts.
    """

    async def submit_redirect(self, payload: RedirectPayload) -> RedirectOutcome: ...

    async def submit_seamless(self, payload: SeamlessPayload) -> SeamlessOutcome: ...

    async def query_status(self, reference_number: str) -> StatusResult: ...

    async def poll_status(self) -> StatusResult: ...

    async def list_purchases(self) -> list[PurchaseRecord]: ...


@runtime_checkable
class CredentialProvider(Protocol):
    """Session credential lookup, injected so no ambient session store is needed."""

    def current_credential(self) -> Optional[str]: ...
