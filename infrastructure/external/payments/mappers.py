"""
Wire -> domain mapping for the purchases listing.
"""
from __future__ import annotations

from typing import Any, Optional

from domain.purchase.entity import PurchaseRecord, parse_datetime, to_bool, to_decimal


# Fields consumed by the mapping; anything else is kept verbatim on the record
_MAPPED_KEYS = {
    "_id", "id", "album", "albumId", "plaqueType", "amount", "currency",
    "paymentMethod", "referenceNumber", "pollurl", "pollUrl", "status", "paid",
    "createdAt", "updatedAt", "customerEmail", "customerPhone", "reason", "artist",
}


def unwrap_listing(body: Any) -> list[Any]:
    """The listing arrives as a bare list, `{data: [...]}` or `{success, data: [...]}`."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return []


def artist_from_reason(reason: Any) -> Optional[str]:
    """'Plaque for "Album" by Artist"' -> 'Artist'."""
    if not isinstance(reason, str):
        return None
    parts = reason.split(" by ")
    if len(parts) < 2:
        return None
    return parts[1].rstrip('"') or None


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def purchase_record_from_wire(row: dict[str, Any]) -> PurchaseRecord:
    album = row.get("album") if isinstance(row.get("album"), dict) else None
    gateway_id = _optional_str(row.get("_id"))
    album_id = (album or {}).get("_id") or row.get("albumId") or ""

    return PurchaseRecord(
        id=str(gateway_id or row.get("id") or ""),
        gateway_id=gateway_id,
        album_id=str(album_id),
        plaque_type=row.get("plaqueType") or "Plaque",
        amount=to_decimal(row.get("amount")),
        currency=row.get("currency") or "USD",
        payment_method=row.get("paymentMethod") or "",
        reference_number=_optional_str(row.get("referenceNumber")),
        poll_url=_optional_str(row.get("pollurl") or row.get("pollUrl")),
        status=row.get("status") or "PENDING",
        paid=to_bool(row.get("paid") or False),
        created_at=parse_datetime(row.get("createdAt")),
        updated_at=parse_datetime(row.get("updatedAt")),
        customer_email=row.get("customerEmail"),
        customer_phone=row.get("customerPhone"),
        reason=row.get("reason"),
        album=album,
        artist=row.get("artist") or artist_from_reason(row.get("reason")),
        extra={k: v for k, v in row.items() if k not in _MAPPED_KEYS},
    )
