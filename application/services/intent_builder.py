"""
Purchase intent builder - turns raw user selections into a validated,
gateway-shaped payload for the redirect or seamless submission path.

Validation order (first failure wins):
1. a listed method and one of its options is selected
2. a phone number is present
3. the phone number is E.164-like
4. the total amount is positive (and inside the method's declared bounds)

Nothing here touches the network: every validation error is raised before
any submission is attempted.
"""
from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, Literal, Optional, Union

from application.dtos.payments import PurchaseSelection, RedirectPayload, SeamlessPayload
from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from domain.common.exceptions import (
    InvalidAmountException,
    InvalidContactException,
    MissingContactException,
    MissingSelectionException,
    UnsupportedRequiredFieldException,
)
from domain.payment.entity import PaymentMethod
from domain.payment.service import find_method
from domain.purchase.entity import AlbumDetails, PurchaseIntent, ShippingDetails


logger = get_logger(__name__)

PHONE_PATTERN = re.compile(r"\+?[1-9][0-9]{1,14}")

# field name -> value taken from the selection; None means "cannot resolve"
FieldResolver = Callable[[PurchaseSelection], Optional[str]]

FIELD_RESOLVERS: Dict[str, FieldResolver] = {
    "customerPhoneNumber": lambda selection: selection.phone.strip() or None,
}


@dataclass(frozen=True)
class BuiltPurchase:
    path: Literal["redirect", "seamless"]
    intent: PurchaseIntent
    method: PaymentMethod
    payload: Union[RedirectPayload, SeamlessPayload]


def is_valid_phone(phone: str) -> bool:
    return PHONE_PATTERN.fullmatch(phone) is not None


class PurchaseIntentBuilder:
    def __init__(
        self,
        settings: Optional[PaymentSettings] = None,
        *,
        resolvers: Optional[Dict[str, FieldResolver]] = None,
    ) -> None:
        self._settings = settings or payment_settings
        self._resolvers = dict(FIELD_RESOLVERS if resolvers is None else resolvers)

    def total_amount(self, selection: PurchaseSelection) -> Decimal:
        total = Decimal(selection.support_amount)
        if selection.include_shipping:
            total += self._settings.shipping_surcharge
        return total

    def _select_method(self, selection: PurchaseSelection, methods: Iterable[PaymentMethod]) -> PaymentMethod:
        method = find_method(methods, selection.payment_method_id)
        if method is None or not method.has_option(selection.payment_option):
            raise MissingSelectionException(selection.payment_method_id)
        return method

    def _validate_phone(self, selection: PurchaseSelection) -> str:
        phone = selection.phone.strip()
        if not phone:
            raise MissingContactException()
        if not is_valid_phone(phone):
            raise InvalidContactException(phone)
        return phone

    def _validate_amount(self, selection: PurchaseSelection, method: PaymentMethod) -> Decimal:
        total = self.total_amount(selection)
        if total <= 0:
            raise InvalidAmountException(total)
        if not method.amount_in_range(total):
            raise InvalidAmountException(
                total,
                minimum=method.minimum_amount if method.minimum_amount > 0 else None,
                maximum=method.maximum_amount if method.maximum_amount > 0 else None,
            )
        return total

    def resolve_required_fields(self, selection: PurchaseSelection, method: PaymentMethod) -> Dict[str, str]:
        """Fill the method's declared fields; a non-optional field nobody can fill is an error."""
        values: Dict[str, str] = {}
        missing: list[str] = []
        for required in method.required_fields:
            resolver = self._resolvers.get(required.name)
            value = resolver(selection) if resolver else None
            if value is None:
                value = selection.field_values.get(required.name) or None
            if value is not None:
                values[required.name] = value
            elif not required.optional:
                missing.append(required.name)
        if missing:
            raise UnsupportedRequiredFieldException(method.code, missing)
        return values

    def album_id_for(self, selection: PurchaseSelection) -> str:
        if selection.album_id:
            return selection.album_id
        # Unique even for two purchases in the same millisecond
        return f"{self._settings.mock_album_prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"

    def build(self, selection: PurchaseSelection, methods: Iterable[PaymentMethod]) -> BuiltPurchase:
        method = self._select_method(selection, methods)
        phone = self._validate_phone(selection)
        amount = self._validate_amount(selection, method)

        redirect = method.redirect_required
        required_fields = {} if redirect else self.resolve_required_fields(selection, method)

        shipping = None
        if selection.include_shipping:
            shipping = ShippingDetails(
                address=selection.shipping_address,
                contact_number=selection.calling_number.strip() or phone,
                instructions=selection.delivery_instructions,
            )

        intent = PurchaseIntent(
            album_id=self.album_id_for(selection),
            plaque_type=selection.plaque_type or self._settings.default_plaque_type,
            amount=amount,
            currency_code=selection.currency_code.strip().upper(),
            phone=phone,
            payment_method_code=method.code,
            redirect_required=redirect,
            required_fields=required_fields,
            shipping=shipping,
            album=AlbumDetails(
                name=selection.album_name,
                artist=selection.album_artist,
                image=selection.album_image,
            ),
        )

        if redirect:
            payload: Union[RedirectPayload, SeamlessPayload] = RedirectPayload.from_intent(intent)
        else:
            payload = SeamlessPayload.from_intent(intent)

        logger.info(
            "purchase_intent_built",
            path="redirect" if redirect else "seamless",
            method=method.code,
            currency=intent.currency_code,
            amount=str(amount),
            shipping=shipping is not None,
        )
        return BuiltPurchase(
            path="redirect" if redirect else "seamless",
            intent=intent,
            method=method,
            payload=payload,
        )
