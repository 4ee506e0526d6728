"""
Purchase session - per-purchase selection state over the directories.

Business rules:
1. Every successful currency (re)load re-applies the default policy
2. Every currency change triggers exactly one fresh method listing
3. A selected method missing from a fresh listing clears method and option
4. A failed method listing clears the method list
5. After close(), late directory results are discarded
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from application.dtos.payments import PurchaseSelection
from application.ports.payment_gateway import PaymentDirectory
from application.services.directory_service import CurrencyDirectory, CurrencyListing, PaymentMethodDirectory
from application.services.intent_builder import BuiltPurchase, PurchaseIntentBuilder
from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from domain.common.exceptions import DirectoryUnavailableException, MissingSelectionException
from domain.payment.entity import Currency, PaymentMethod
from domain.payment.service import find_method


logger = get_logger(__name__)


class PurchaseSession:
    def __init__(
        self,
        directory: PaymentDirectory,
        *,
        builder: Optional[PurchaseIntentBuilder] = None,
        settings: Optional[PaymentSettings] = None,
    ) -> None:
        settings = settings or payment_settings
        self._currency_directory = CurrencyDirectory(directory, preferred=settings.preferred_currency)
        self._method_directory = PaymentMethodDirectory(directory)
        self._builder = builder or PurchaseIntentBuilder(settings)

        self.currencies: List[Currency] = []
        self.selected_currency: Optional[str] = None
        self.methods: List[PaymentMethod] = []
        self.selected_method_id: Optional[str] = None
        self.selected_option: Optional[str] = None
        self._generation = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def selected_method(self) -> Optional[PaymentMethod]:
        return find_method(self.methods, self.selected_method_id)

    def close(self) -> None:
        self._closed = True

    def _clear_method(self) -> None:
        self.selected_method_id = None
        self.selected_option = None

    async def load_currencies(self) -> CurrencyListing:
        listing = await self._currency_directory.load()
        if self._closed:
            logger.info("session_result_discarded", resource="currencies")
            return listing
        self.currencies = listing.currencies
        self.selected_currency = listing.default_code
        return listing

    async def select_currency(self, currency_code: str) -> List[PaymentMethod]:
        code = currency_code.strip().upper()
        self.selected_currency = code
        self._generation += 1
        generation = self._generation

        try:
            methods = await self._method_directory.methods_for(code)
        except DirectoryUnavailableException:
            if not self._closed and generation == self._generation:
                self.methods = []
                self._clear_method()
            raise

        if self._closed or generation != self._generation:
            # A newer currency change (or teardown) superseded this listing
            logger.info("session_result_discarded", resource="payment methods", currency=code)
            return methods

        self.methods = methods
        if self.selected_method_id and find_method(methods, self.selected_method_id) is None:
            logger.info("session_method_cleared", method_id=self.selected_method_id, currency=code)
            self._clear_method()
        return methods

    def select_method(self, method_id: Optional[str], option: Optional[str] = None) -> PaymentMethod:
        method = find_method(self.methods, method_id)
        if method is None:
            raise MissingSelectionException(method_id)
        self.selected_method_id = method.id
        self.selected_option = option
        return method

    def build(self, selection: PurchaseSelection) -> BuiltPurchase:
        """Validate the session's selections together with the user input."""
        update = {
            "currency_code": self.selected_currency,
            "payment_method_id": self.selected_method_id,
            "payment_option": self.selected_option,
        }
        update = {k: v for k, v in update.items() if v is not None}
        return self._builder.build(selection.model_copy(update=update), self.methods)

    def total_amount(self, selection: PurchaseSelection) -> Decimal:
        return self._builder.total_amount(selection)
