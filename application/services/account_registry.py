"""
In-process purchase accounts, one per bearer credential.

Each account owns a ledger plus the gateway and reconciler bound to it, so the
reconciler's single-flight markers are shared across requests for the same
credential.

Business rules:
1. Only routes that write state create accounts; lookups never do
2. At most `max_accounts` are held; the least recently used is evicted first
3. An account unused for `idle_ttl_seconds` is evicted on the next access
4. An evicted account's reconciler is closed and its gateway client released
"""
from __future__ import annotations

import asyncio
import hashlib
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from application.ports.payment_gateway import CredentialProvider, PurchaseGateway
from application.services.payment_service import PurchaseService
from application.services.reconciliation_service import StatusReconciler
from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from domain.purchase.ledger import PurchaseLedger


logger = get_logger(__name__)

GatewayFactory = Callable[[CredentialProvider], PurchaseGateway]

ANONYMOUS = "anonymous"


@dataclass
class PurchaseAccount:
    ledger: PurchaseLedger
    gateway: PurchaseGateway
    service: PurchaseService
    reconciler: StatusReconciler
    last_used: float = field(default_factory=time.monotonic)

    def touch(self) -> None:
        self.last_used = time.monotonic()


def _account_key(credential: Optional[str]) -> str:
    if not credential:
        return ANONYMOUS
    # Never keep the raw credential as a lookup key
    return hashlib.sha256(credential.encode("utf-8")).hexdigest()


async def _close_accounts(accounts: List[PurchaseAccount]) -> None:
    for account in accounts:
        account.reconciler.close()
    await asyncio.gather(*(a.service.aclose() for a in accounts), return_exceptions=True)


class PurchaseAccountRegistry:
    def __init__(
        self,
        gateway_factory: GatewayFactory,
        *,
        max_accounts: Optional[int] = None,
        idle_ttl_seconds: Optional[float] = None,
        settings: Optional[PaymentSettings] = None,
    ) -> None:
        cfg = (settings or payment_settings).accounts
        self._gateway_factory = gateway_factory
        self.max_accounts = max(1, cfg.max_accounts if max_accounts is None else max_accounts)
        self.idle_ttl_seconds = cfg.idle_ttl_seconds if idle_ttl_seconds is None else idle_ttl_seconds
        self._accounts: "OrderedDict[str, PurchaseAccount]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._accounts)

    def _pop_idle(self) -> List[PurchaseAccount]:
        if self.idle_ttl_seconds <= 0:
            return []
        cutoff = time.monotonic() - self.idle_ttl_seconds
        expired = [key for key, account in self._accounts.items() if account.last_used < cutoff]
        return [self._accounts.pop(key) for key in expired]

    def _pop_overflow(self) -> List[PurchaseAccount]:
        evicted = []
        while len(self._accounts) > self.max_accounts:
            _, account = self._accounts.popitem(last=False)
            evicted.append(account)
        return evicted

    def get(self, credentials: CredentialProvider) -> Optional[PurchaseAccount]:
        """Existing account for the credential, or None; never creates one."""
        key = _account_key(credentials.current_credential())
        account = self._accounts.get(key)
        if account is not None:
            account.touch()
            self._accounts.move_to_end(key)
        return account

    async def account_for(self, credentials: CredentialProvider) -> PurchaseAccount:
        account = self.get(credentials)
        if account is not None:
            return account

        key = _account_key(credentials.current_credential())
        ledger = PurchaseLedger()
        gateway = self._gateway_factory(credentials)
        account = PurchaseAccount(
            ledger=ledger,
            gateway=gateway,
            service=PurchaseService(gateway, ledger),
            reconciler=StatusReconciler(gateway, ledger),
        )
        self._accounts[key] = account

        evicted = self._pop_idle() + self._pop_overflow()
        logger.info(
            "purchase_account_created",
            anonymous=key == ANONYMOUS,
            accounts=len(self._accounts),
            evicted=len(evicted),
        )
        if evicted:
            await _close_accounts(evicted)
        return account

    async def aclose(self) -> None:
        accounts = list(self._accounts.values())
        self._accounts.clear()
        await _close_accounts(accounts)
