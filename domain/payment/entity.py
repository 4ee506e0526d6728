"""
Payment domain entities - currencies, payment methods and purchase status
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from shared.codes.payment_codes import GATEWAY_STATUS_TO_INTERNAL


class PurchaseStatus(str, Enum):
    """Purchase status as seen by the client.

    PAID and COMPLETED are both terminal success, FAILED and CANCELLED are
    terminal failure, and everything unrecognised collapses into PENDING.
    """
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "PurchaseStatus":
        """Case-insensitive wire parsing, never raises."""
        if isinstance(raw, PurchaseStatus):
            return raw
        key = str(raw or "").strip().upper()
        return cls(GATEWAY_STATUS_TO_INTERNAL.get(key, cls.PENDING.value))

    @property
    def is_success(self) -> bool:
        return self in (PurchaseStatus.PAID, PurchaseStatus.COMPLETED)

    @property
    def is_failure(self) -> bool:
        return self in (PurchaseStatus.FAILED, PurchaseStatus.CANCELLED)

    @property
    def is_terminal(self) -> bool:
        return self.is_success or self.is_failure


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    default_currency: bool = False
    active: bool = True
    rate_to_default: Decimal = Decimal("1")
    id: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class RequiredField:
    name: str
    display_name: str = ""
    optional: bool = False
    field_type: Optional[str] = None


@dataclass(frozen=True)
class PaymentMethod:
    """
    Payment method with capability metadata

    Business rules:
    1. Only usable while active
    2. Only usable for currencies listed in `currencies` (empty list = no restriction)
    3. Offers a single selectable option, its own name
    """

    id: str
    code: str
    name: str
    active: bool = True
    redirect_required: bool = False
    minimum_amount: Decimal = Decimal("0")
    maximum_amount: Decimal = Decimal("0")
    currencies: tuple[str, ...] = ()
    required_fields: tuple[RequiredField, ...] = field(default_factory=tuple)
    description: str = ""
    processing_message: str = ""

    @property
    def options(self) -> list[str]:
        return [self.name]

    def has_option(self, option: Optional[str]) -> bool:
        return bool(option) and option in self.options

    def supports_currency(self, currency_code: str) -> bool:
        if not self.currencies:
            return True
        return currency_code.upper() in {c.upper() for c in self.currencies}

    def is_available_for(self, currency_code: str) -> bool:
        return self.active and self.supports_currency(currency_code)

    def requires_field(self, name: str) -> bool:
        return any(f.name == name and not f.optional for f in self.required_fields)

    def amount_in_range(self, amount: Decimal) -> bool:
        """Bounds are only enforced when the gateway declares them (> 0)."""
        if self.minimum_amount > 0 and amount < self.minimum_amount:
            return False
        if self.maximum_amount > 0 and amount > self.maximum_amount:
            return False
        return True
