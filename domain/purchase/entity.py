"""
Purchase domain entities - purchase intent and purchase record (plaque)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from domain.payment.entity import PurchaseStatus


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure the timestamp is UTC aware"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _ensure_utc(value)
    try:
        return _ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None


def to_decimal(value: Any, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    # NaN, sNaN and Infinity cannot be summed or rendered as JSON
    return amount if amount.is_finite() else default


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def to_dict(value: Any) -> dict:
    return dict(value) if isinstance(value, dict) else {"value": value}


@dataclass(frozen=True)
class AlbumDetails:
    name: str = ""
    artist: str = ""
    image: str = ""


@dataclass(frozen=True)
class ShippingDetails:
    address: str
    contact_number: str
    instructions: str = ""


@dataclass(frozen=True)
class PurchaseIntent:
    """Validated purchase, built per submission and never persisted."""

    album_id: str
    plaque_type: str
    amount: Decimal
    currency_code: str
    phone: str
    payment_method_code: str
    redirect_required: bool
    required_fields: dict[str, str] = field(default_factory=dict)
    shipping: Optional[ShippingDetails] = None
    album: AlbumDetails = field(default_factory=AlbumDetails)


@dataclass(frozen=True)
class RecordKey:
    """Ledger match key: a record matches on internal id or on the gateway's id."""

    id: Optional[str] = None
    gateway_id: Optional[str] = None

    def matches(self, record: "PurchaseRecord") -> bool:
        if self.id and record.id == self.id:
            return True
        if self.gateway_id and record.gateway_id == self.gateway_id:
            return True
        return False

    @property
    def label(self) -> str:
        return self.id or self.gateway_id or ""


# wire name -> (attribute, converter)
_PATCHABLE_FIELDS: dict[str, tuple[str, Any]] = {
    "albumId": ("album_id", str),
    "plaqueType": ("plaque_type", str),
    "amount": ("amount", lambda value: to_decimal(value, None)),
    "currency": ("currency", str),
    "paymentMethod": ("payment_method", str),
    "referenceNumber": ("reference_number", str),
    "pollUrl": ("poll_url", str),
    "pollurl": ("poll_url", str),
    "status": ("status", PurchaseStatus.parse),
    "paid": ("paid", to_bool),
    "createdAt": ("created_at", parse_datetime),
    "updatedAt": ("updated_at", parse_datetime),
    "customerEmail": ("customer_email", str),
    "customerPhone": ("customer_phone", str),
    "reason": ("reason", str),
    "album": ("album", to_dict),
    "artist": ("artist", str),
}

# Identity is what a patch is matched on, never what it changes.
_IDENTITY_FIELDS = {"id", "_id"}

# A null on the wire cannot clear these.
_NON_NULLABLE = {"album_id", "plaque_type", "amount", "currency", "payment_method", "status", "paid"}


@dataclass
class PurchaseRecord:
    """
    Purchase record (plaque) - local mirror of the server-side purchase

    Business rules:
    1. Mutated only through apply_patch (reconciliation), never deleted
    2. Patches merge field by field; fields absent from a patch stay untouched
    3. A patch carrying paid=true forces status to COMPLETED, whatever the
       gateway's status string says: the boolean is ground truth
    """

    id: str
    gateway_id: Optional[str] = None
    album_id: str = ""
    plaque_type: str = "Plaque"
    amount: Decimal = field(default_factory=lambda: Decimal("0"))
    currency: str = "USD"
    payment_method: str = ""
    reference_number: Optional[str] = None
    poll_url: Optional[str] = None
    status: PurchaseStatus = PurchaseStatus.PENDING
    paid: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    reason: Optional[str] = None
    album: Optional[dict] = None
    artist: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.amount = to_decimal(self.amount)
        self.status = PurchaseStatus.parse(self.status)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)
        if self.extra is None:
            self.extra = {}

    @property
    def key(self) -> RecordKey:
        return RecordKey(id=self.id, gateway_id=self.gateway_id)

    @property
    def poll_target(self) -> Optional[str]:
        """What a status query is keyed on: reference number first, then poll URL."""
        return self.reference_number or self.poll_url

    def is_final_status(self) -> bool:
        return self.status.is_terminal

    def apply_patch(self, patch: dict[str, Any]) -> set[str]:
        """Merge a reconciliation patch; returns the attribute names written."""
        written: set[str] = set()
        for wire_name, value in patch.items():
            if wire_name in _IDENTITY_FIELDS:
                continue
            target = _PATCHABLE_FIELDS.get(wire_name)
            if target is None:
                self.extra[wire_name] = value
                written.add(wire_name)
                continue
            attr, convert = target
            if value is None:
                if attr in _NON_NULLABLE:
                    continue
                setattr(self, attr, None)
            else:
                converted = convert(value)
                if converted is None and attr in _NON_NULLABLE:
                    continue
                setattr(self, attr, converted)
            written.add(attr)

        if patch.get("paid") is not None and to_bool(patch["paid"]):
            self.status = PurchaseStatus.COMPLETED
            written.add("status")
        return written
