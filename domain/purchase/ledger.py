"""
Purchase ledger - the client-held collection of purchase records (plaques)
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Optional

from .entity import PurchaseRecord, RecordKey
from .events import PurchaseStatusChanged, PurchaseTracked


class PurchaseLedger:
    """
    Authoritative local copy of every purchase record

    Business rules:
    1. Records arrive wholesale from the purchases listing (replace_all) or one
       at a time as provisional records after a seamless submission (track)
    2. Afterwards they change only through apply_patch, field by field, so
       concurrent patches to the same record never erase each other's fields
    3. Records are never deleted by the client
    4. total_spent sums every record regardless of status
    """

    def __init__(self, records: Optional[Iterable[PurchaseRecord]] = None):
        self._records: List[PurchaseRecord] = list(records or [])
        self.events: List = []

    def __len__(self) -> int:
        return len(self._records)

    def list(self) -> List[PurchaseRecord]:
        return list(self._records)

    def get(self, key: RecordKey) -> Optional[PurchaseRecord]:
        for record in self._records:
            if key.matches(record):
                return record
        return None

    def replace_all(self, records: Iterable[PurchaseRecord]) -> None:
        self._records = list(records)

    def track(self, record: PurchaseRecord) -> PurchaseRecord:
        """Add a record unless one with the same key exists; returns the ledger's copy."""
        existing = self.get(record.key)
        if existing is not None:
            return existing
        self._records.append(record)
        self.events.append(PurchaseTracked(record_id=record.id, reference_number=record.reference_number))
        return record

    def apply_patch(self, key: RecordKey, patch: dict[str, Any]) -> Optional[PurchaseRecord]:
        """Merge a patch into the matching record; no target means the patch is dropped."""
        record = self.get(key)
        if record is None:
            return None

        previous = record.status
        record.apply_patch(patch)
        if record.status != previous:
            self.events.append(PurchaseStatusChanged(
                record_id=record.id,
                reference_number=record.reference_number,
                previous=previous,
                current=record.status,
            ))
        return record

    def total_spent(self) -> Decimal:
        return sum((r.amount for r in self._records), Decimal("0"))

    def clear_events(self) -> List:
        """Return and clear collected domain events"""
        events = self.events.copy()
        self.events.clear()
        return events
