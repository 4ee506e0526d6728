"""
Payment directory domain service - currency default policy and method availability
"""
from typing import Iterable, List, Optional

from .entity import Currency, PaymentMethod


PREFERRED_CURRENCY = "USD"


def resolve_default_currency(
    currencies: Iterable[Currency],
    preferred: str = PREFERRED_CURRENCY,
) -> Optional[Currency]:
    """
    Pick the default currency for a freshly loaded listing.

    Business rules (deterministic, re-applied on every load):
    1. The preferred code (USD) wins when present and active
    2. Otherwise the first entry flagged defaultCurrency
    3. Otherwise the first entry in listing order
    """
    active = [c for c in currencies if c.active]
    if not active:
        return None

    for currency in active:
        if currency.code.upper() == preferred.upper():
            return currency

    for currency in active:
        if currency.default_currency:
            return currency

    return active[0]


def flagged_default_count(currencies: Iterable[Currency]) -> int:
    """Number of active currencies flagged as default (expected: exactly one)."""
    return sum(1 for c in currencies if c.active and c.default_currency)


def available_methods(methods: Iterable[PaymentMethod], currency_code: str) -> List[PaymentMethod]:
    """Active methods valid for the currency, in listing order."""
    return [m for m in methods if m.is_available_for(currency_code)]


def find_method(methods: Iterable[PaymentMethod], method_id: Optional[str]) -> Optional[PaymentMethod]:
    if not method_id:
        return None
    for method in methods:
        if method.id == str(method_id):
            return method
    return None
