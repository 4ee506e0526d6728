"""
Support channel - out-of-band (WhatsApp) links for payment instructions,
cash pickup and "my payment method is missing" requests.
"""
from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from core.settings import PaymentSettings, payment_settings


_INVOICE_ALPHABET = string.ascii_uppercase + string.digits


def invoice_number(length: int = 9) -> str:
    return "INV-" + "".join(secrets.choice(_INVOICE_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class SupportLink:
    url: str
    message: str
    invoice_number: Optional[str] = None


@dataclass(frozen=True)
class OrderSummary:
    album_name: str
    album_artist: str
    currency_code: str
    amount: Decimal
    shipping_address: Optional[str] = None

    @property
    def amount_text(self) -> str:
        return f"{self.currency_code} {Decimal(self.amount).quantize(Decimal('0.01'))}"


class SupportChannel:
    def __init__(self, settings: Optional[PaymentSettings] = None) -> None:
        self._settings = settings or payment_settings

    def link(self, message: str, *, invoice: Optional[str] = None) -> SupportLink:
        support = self._settings.support
        phone = support.phone
        url = f"{support.base_url.rstrip('/')}/{phone}?text={quote(message, safe='')}"
        return SupportLink(url=url, message=message, invoice_number=invoice)

    def payment_instructions(self, order: OrderSummary, *, instructions: str, method_name: str) -> SupportLink:
        message = (
            f"Payment instructions for {order.album_name}: {instructions}\n"
            f"Amount: {order.amount_text}\n"
            f"Payment Method: {method_name}\n"
            f"Album: {order.album_name} by {order.album_artist}"
        )
        return self.link(message)

    def cash_pickup(self, order: OrderSummary) -> SupportLink:
        invoice = invoice_number()
        shipping = (
            f"Shipping Address: {order.shipping_address}"
            if order.shipping_address
            else "No shipping required"
        )
        message = (
            "Hi, I'd like to arrange cash pickup for my order:\n"
            f"Album: {order.album_name}\n"
            f"Artist: {order.album_artist}\n"
            f"Amount: {order.amount_text}\n"
            f"Invoice: {invoice}\n"
            f"{shipping}"
        )
        return self.link(message, invoice=invoice)

    def other_method(self, order: OrderSummary) -> SupportLink:
        invoice = invoice_number()
        message = (
            "Hi, I don't see my preferred payment method for:\n"
            f"Album: {order.album_name}\n"
            f"Artist: {order.album_artist}\n"
            f"Amount: {order.amount_text}\n"
            f"Invoice: {invoice}\n"
            "Can you help me with alternative payment options?"
        )
        return self.link(message, invoice=invoice)
