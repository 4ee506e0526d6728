"""
Purchase domain events.

Dataclass events record purchase lifecycle facts observed while reconciling
the ledger. Domain remains free of infrastructure imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid

from domain.payment.entity import PurchaseStatus


@dataclass
class PurchaseEvent:
    record_id: str
    reference_number: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class PurchaseStatusChanged(PurchaseEvent):
    previous: PurchaseStatus = PurchaseStatus.PENDING
    current: PurchaseStatus = PurchaseStatus.PENDING

    @property
    def settled(self) -> bool:
        return self.current.is_terminal and not self.previous.is_terminal


@dataclass
class PurchaseTracked(PurchaseEvent):
    pass
