"""
Payment DTOs (Pydantic v2) used at application boundaries.

Wire models speak the gateway's camelCase JSON; `to_entity()` turns directory
listings into domain entities. Submission results are a tagged variant keyed
on `kind` so callers branch once instead of probing response fields.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from domain.payment.entity import Currency, PaymentMethod, PurchaseStatus, RequiredField
from domain.purchase.entity import PurchaseIntent, PurchaseRecord, to_bool


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Directory listings
# ---------------------------------------------------------------------------

class CurrencyDTO(_WireModel):
    code: str
    name: str = ""
    default_currency: bool = False
    active: bool = True
    rate_to_default: Optional[Decimal] = None
    id: Optional[int] = None
    description: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v: str) -> str:
        return (v or "").strip().upper()

    def to_entity(self) -> Currency:
        return Currency(
            code=self.code,
            name=self.name,
            default_currency=self.default_currency,
            active=self.active,
            rate_to_default=self.rate_to_default if self.rate_to_default is not None else Decimal("1"),
            id=self.id,
            description=self.description,
        )


class RequiredFieldDTO(_WireModel):
    name: str
    display_name: Optional[str] = None
    optional: bool = False
    field_type: Optional[str] = None

    def to_entity(self) -> RequiredField:
        return RequiredField(
            name=self.name,
            display_name=self.display_name or self.name,
            optional=self.optional,
            field_type=self.field_type,
        )


class PaymentMethodDTO(_WireModel):
    id: str
    code: str
    name: str
    active: bool = False
    redirect_required: bool = False
    minimum_amount: Optional[Decimal] = None
    maximum_amount: Optional[Decimal] = None
    currencies: Optional[list[str]] = None
    required_fields: Optional[list[RequiredFieldDTO]] = None
    description: Optional[str] = None
    processing_payment_message: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str:
        return str(v)

    def to_entity(self) -> PaymentMethod:
        return PaymentMethod(
            id=self.id,
            code=self.code,
            name=self.name,
            active=self.active,
            redirect_required=self.redirect_required,
            minimum_amount=self.minimum_amount or Decimal("0"),
            maximum_amount=self.maximum_amount or Decimal("0"),
            currencies=tuple(c.upper() for c in (self.currencies or [])),
            required_fields=tuple(f.to_entity() for f in (self.required_fields or [])),
            description=self.description or "",
            processing_message=self.processing_payment_message or "",
        )


# ---------------------------------------------------------------------------
# Purchase input and payloads
# ---------------------------------------------------------------------------

class PurchaseSelection(_WireModel):
    """Raw user selections for one purchase, as collected by the host UI."""

    currency_code: str = "USD"
    payment_method_id: Optional[str] = None
    payment_option: Optional[str] = None
    phone: str = ""
    support_amount: Decimal = Decimal("0")
    include_shipping: bool = False
    shipping_address: str = ""
    delivery_instructions: str = ""
    calling_number: str = ""
    album_id: Optional[str] = None
    plaque_type: Optional[str] = None
    album_name: str = ""
    album_artist: str = ""
    album_image: str = ""
    # Values for method-declared required fields beyond the phone number
    field_values: dict[str, str] = Field(default_factory=dict)

    @field_validator("payment_method_id", mode="before")
    @classmethod
    def _method_id_as_str(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)


class AlbumDetailsPayload(_WireModel):
    name: str = ""
    artist: str = ""
    image: str = ""


class ShippingDetailsPayload(_WireModel):
    include_shipping: bool
    address: Optional[str] = None
    instructions: Optional[str] = None
    contact_number: Optional[str] = None


class RedirectPayload(_WireModel):
    album_id: str
    plaque_type: str
    amount: Decimal
    phone: str
    currency_code: str
    album_details: AlbumDetailsPayload

    @field_serializer("amount")
    def _amount_as_number(self, amount: Decimal) -> float:
        return float(amount)

    @classmethod
    def from_intent(cls, intent: PurchaseIntent) -> "RedirectPayload":
        return cls(
            album_id=intent.album_id,
            plaque_type=intent.plaque_type,
            amount=intent.amount,
            phone=intent.phone,
            currency_code=intent.currency_code,
            album_details=AlbumDetailsPayload(
                name=intent.album.name, artist=intent.album.artist, image=intent.album.image
            ),
        )


class SeamlessPayload(RedirectPayload):
    payment_method_code: str
    required_fields: dict[str, str] = Field(default_factory=dict)
    shipping_details: ShippingDetailsPayload

    @classmethod
    def from_intent(cls, intent: PurchaseIntent) -> "SeamlessPayload":
        if intent.shipping is not None:
            shipping = ShippingDetailsPayload(
                include_shipping=True,
                address=intent.shipping.address,
                instructions=intent.shipping.instructions,
                contact_number=intent.shipping.contact_number,
            )
        else:
            shipping = ShippingDetailsPayload(include_shipping=False)
        return cls(
            album_id=intent.album_id,
            plaque_type=intent.plaque_type,
            amount=intent.amount,
            phone=intent.phone,
            currency_code=intent.currency_code,
            album_details=AlbumDetailsPayload(
                name=intent.album.name, artist=intent.album.artist, image=intent.album.image
            ),
            payment_method_code=intent.payment_method_code,
            required_fields=dict(intent.required_fields),
            shipping_details=shipping,
        )


# ---------------------------------------------------------------------------
# Submission outcomes (tagged variant)
# ---------------------------------------------------------------------------

class _Outcome(BaseModel):
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def requires_polling(self) -> bool:
        return False


class RedirectOutcome(_Outcome):
    """Hand control to the gateway's hosted page; terminal for this process instance."""
    kind: Literal["redirect"] = "redirect"
    redirect_url: str


class InstructionalOutcome(_Outcome):
    """Instructions to relay out-of-band; never polled."""
    kind: Literal["instructional"] = "instructional"
    instructions: str


class PollableOutcome(_Outcome):
    kind: Literal["pollable"] = "pollable"
    reference_number: str

    @property
    def requires_polling(self) -> bool:
        return True


class ImmediateSuccessOutcome(_Outcome):
    kind: Literal["immediate_success"] = "immediate_success"


class OpaqueSuccessOutcome(_Outcome):
    """Accepted by the gateway in a shape we do not recognise; nothing to follow up."""
    kind: Literal["opaque_success"] = "opaque_success"


SeamlessOutcome = Annotated[
    Union[InstructionalOutcome, PollableOutcome, ImmediateSuccessOutcome, OpaqueSuccessOutcome],
    Field(discriminator="kind"),
]

SubmissionOutcome = Annotated[
    Union[RedirectOutcome, InstructionalOutcome, PollableOutcome, ImmediateSuccessOutcome, OpaqueSuccessOutcome],
    Field(discriminator="kind"),
]


def parse_seamless_response(data: Any) -> Union[
    InstructionalOutcome, PollableOutcome, ImmediateSuccessOutcome, OpaqueSuccessOutcome
]:
    """Resolve a seamless submission response by precedence.

    1. paymentInstructions -> instructional
    2. referenceNumber     -> pollable
    3. status == "success" or success is True -> immediate success
    4. anything else       -> opaque success (a new shape degrades, never raises)
    """
    raw = data if isinstance(data, dict) else {}
    instructions = raw.get("paymentInstructions")
    if instructions:
        return InstructionalOutcome(instructions=str(instructions), raw=raw)
    reference = raw.get("referenceNumber")
    if reference:
        return PollableOutcome(reference_number=str(reference), raw=raw)
    if raw.get("status") == "success" or raw.get("success") is True:
        return ImmediateSuccessOutcome(raw=raw)
    return OpaqueSuccessOutcome(raw=raw)


# ---------------------------------------------------------------------------
# Status reconciliation
# ---------------------------------------------------------------------------

# Envelope flags of the status endpoint, not purchase fields
_STATUS_ENVELOPE_KEYS = {"success", "message"}


class StatusResult(BaseModel):
    status: PurchaseStatus = PurchaseStatus.PENDING
    paid: bool = False
    raw: dict[str, Any] = Field(default_factory=dict)
    # False when the body was not a non-empty JSON object
    well_formed: bool = True

    @classmethod
    def from_wire(cls, data: Any) -> "StatusResult":
        raw = data if isinstance(data, dict) else {}
        return cls(
            status=PurchaseStatus.parse(raw.get("status")),
            paid=to_bool(raw.get("paid", False)),
            raw=raw,
            well_formed=bool(raw),
        )

    @property
    def succeeded(self) -> bool:
        """A body that is not an object, or an explicit success=false, means the poll itself failed."""
        return self.well_formed and self.raw.get("success") is not False

    @property
    def patch(self) -> dict[str, Any]:
        return {k: v for k, v in self.raw.items() if k not in _STATUS_ENVELOPE_KEYS}


# ---------------------------------------------------------------------------
# Views returned by the HTTP surface
# ---------------------------------------------------------------------------

class CurrencyView(_WireModel):
    code: str
    name: str
    default_currency: bool
    active: bool
    rate_to_default: float

    @classmethod
    def from_entity(cls, currency: Currency) -> "CurrencyView":
        return cls(
            code=currency.code,
            name=currency.name,
            default_currency=currency.default_currency,
            active=currency.active,
            rate_to_default=float(currency.rate_to_default),
        )


class PaymentMethodView(_WireModel):
    id: str
    code: str
    name: str
    redirect_required: bool
    minimum_amount: float
    maximum_amount: float
    options: list[str]
    required_fields: list[RequiredFieldDTO]
    description: str = ""
    processing_message: str = ""

    @classmethod
    def from_entity(cls, method: PaymentMethod) -> "PaymentMethodView":
        return cls(
            id=method.id,
            code=method.code,
            name=method.name,
            redirect_required=method.redirect_required,
            minimum_amount=float(method.minimum_amount),
            maximum_amount=float(method.maximum_amount),
            options=method.options,
            required_fields=[
                RequiredFieldDTO(
                    name=f.name,
                    display_name=f.display_name,
                    optional=f.optional,
                    field_type=f.field_type,
                )
                for f in method.required_fields
            ],
            description=method.description,
            processing_message=method.processing_message,
        )


class PurchaseRecordView(_WireModel):
    id: str
    gateway_id: Optional[str] = None
    album_id: str
    plaque_type: str
    amount: float
    currency: str
    payment_method: str
    reference_number: Optional[str] = None
    poll_url: Optional[str] = None
    status: PurchaseStatus
    paid: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    reason: Optional[str] = None
    album: Optional[dict[str, Any]] = None
    artist: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, record: PurchaseRecord) -> "PurchaseRecordView":
        return cls(
            id=record.id,
            gateway_id=record.gateway_id,
            album_id=record.album_id,
            plaque_type=record.plaque_type,
            amount=float(record.amount),
            currency=record.currency,
            payment_method=record.payment_method,
            reference_number=record.reference_number,
            poll_url=record.poll_url,
            status=record.status,
            paid=record.paid,
            created_at=record.created_at,
            updated_at=record.updated_at,
            customer_email=record.customer_email,
            customer_phone=record.customer_phone,
            reason=record.reason,
            album=record.album,
            artist=record.artist,
            extra=dict(record.extra),
        )


class SupportLinkView(_WireModel):
    url: str
    message: str
    invoice_number: Optional[str] = None


class SubmissionView(_WireModel):
    """What the host gets back from one purchase submission."""

    kind: str
    redirect_url: Optional[str] = None
    instructions: Optional[str] = None
    support_link: Optional[SupportLinkView] = None
    reference_number: Optional[str] = None
    record: Optional[PurchaseRecordView] = None
    message: Optional[str] = None
