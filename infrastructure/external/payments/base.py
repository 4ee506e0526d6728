"""
Base payment client implementing shared concerns: http, timeouts, logging, error mapping.

Concrete services (directory, purchases) subclass and implement endpoint logic.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from infrastructure.external.api_clients.base import BaseAPIClient


logger = get_logger(__name__)


class BasePaymentClient(BaseAPIClient):
    provider: str = "base"

    def __init__(
        self,
        base_url: str,
        *,
        settings: Optional[PaymentSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or payment_settings
        super().__init__(
            base_url=base_url,
            timeout=self.timeouts,
            max_retries=self._settings.retry.max,
            retry_delay=self._settings.retry.base_backoff,
            debug=self._settings.debug_http,
            transport=transport,
        )

    @property
    def timeouts(self) -> httpx.Timeout:
        cfg = self._settings.timeouts
        return httpx.Timeout(
            cfg.total,
            connect=cfg.connect,
            read=cfg.read,
            write=cfg.write,
        )

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        await self.close()

    def _log(self, event: str, **kwargs: Any) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
