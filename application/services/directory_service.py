"""
Directory application services - currency and payment-method discovery.

Both wrap the PaymentDirectory port; the default-currency policy and method
filtering live in the domain service so they can be tested without I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from application.ports.payment_gateway import PaymentDirectory
from core.logging_config import get_logger
from domain.payment.entity import Currency, PaymentMethod
from domain.payment.service import (
    PREFERRED_CURRENCY,
    available_methods,
    flagged_default_count,
    resolve_default_currency,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrencyListing:
    currencies: List[Currency]
    default: Optional[Currency]

    @property
    def default_code(self) -> Optional[str]:
        return self.default.code if self.default else None


class CurrencyDirectory:
    """Active currencies plus the default-selection policy."""

    def __init__(self, directory: PaymentDirectory, *, preferred: str = PREFERRED_CURRENCY) -> None:
        self._directory = directory
        self._preferred = preferred

    async def load(self) -> CurrencyListing:
        """Fetch active currencies; raises DirectoryUnavailableException on failure."""
        currencies = [c for c in await self._directory.list_active_currencies() if c.active]

        flagged = flagged_default_count(currencies)
        if flagged > 1:
            logger.warning(
                "multiple_default_currencies",
                count=flagged,
                codes=[c.code for c in currencies if c.default_currency],
            )

        default = resolve_default_currency(currencies, self._preferred)
        logger.info(
            "currencies_loaded",
            count=len(currencies),
            default=default.code if default else None,
        )
        return CurrencyListing(currencies=currencies, default=default)


class PaymentMethodDirectory:
    """Active payment methods valid for one currency."""

    def __init__(self, directory: PaymentDirectory) -> None:
        self._directory = directory

    async def methods_for(self, currency_code: str) -> List[PaymentMethod]:
        methods = available_methods(await self._directory.list_methods_for(currency_code), currency_code)
        logger.info("payment_methods_loaded", currency=currency_code, count=len(methods))
        return methods
