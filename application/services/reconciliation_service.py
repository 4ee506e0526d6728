"""
Status reconciliation - queries a purchase's current status and merges the
result into the ledger.

Business rules:
1. Single-flight per poll target: a trigger while a query for the same
   reference is outstanding is ignored, not queued
2. The poll's fields are merged field by field (see PurchaseRecord.apply_patch);
   a paid=true result forces COMPLETED
3. A failed poll is logged and leaves the ledger untouched; it never raises
4. After close(), results that arrive are discarded
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

from application.dtos.payments import StatusResult
from application.ports.payment_gateway import PurchaseGateway
from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from domain.common.exceptions import BusinessException
from domain.purchase.entity import PurchaseRecord, RecordKey
from domain.purchase.events import PurchaseStatusChanged
from domain.purchase.ledger import PurchaseLedger


logger = get_logger(__name__)


class ReconcileOutcome(str, Enum):
    APPLIED = "applied"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    NO_TARGET = "no_target"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class ReconcileResult:
    outcome: ReconcileOutcome
    record: Optional[PurchaseRecord] = None

    @property
    def ignored(self) -> bool:
        return self.outcome is ReconcileOutcome.IN_FLIGHT

    @property
    def applied(self) -> bool:
        return self.outcome is ReconcileOutcome.APPLIED


class StatusReconciler:
    def __init__(
        self,
        gateway: PurchaseGateway,
        ledger: PurchaseLedger,
        *,
        settings: Optional[PaymentSettings] = None,
    ) -> None:
        self._gateway = gateway
        self._ledger = ledger
        self._settings = settings or payment_settings
        self._in_flight: Set[str] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def is_in_flight(self, target: str) -> bool:
        return target in self._in_flight

    def close(self) -> None:
        self._closed = True

    async def _query(self, record: PurchaseRecord) -> StatusResult:
        if record.reference_number:
            return await self._gateway.query_status(record.reference_number)
        return await self._gateway.poll_status()

    def _publish_events(self) -> None:
        for event in self._ledger.clear_events():
            if isinstance(event, PurchaseStatusChanged) and event.settled:
                logger.info(
                    "purchase_settled",
                    record=event.record_id,
                    reference_number=event.reference_number,
                    status=event.current.value,
                )

    async def reconcile(self, key: RecordKey) -> ReconcileResult:
        record = self._ledger.get(key)
        if record is None:
            logger.info("reconcile_record_not_found", record=key.label)
            return ReconcileResult(ReconcileOutcome.NOT_FOUND)

        target = record.poll_target
        if not target:
            logger.info("reconcile_no_target", record=record.id)
            return ReconcileResult(ReconcileOutcome.NO_TARGET, record)

        if target in self._in_flight:
            logger.debug("reconcile_ignored_in_flight", record=record.id, target=target)
            return ReconcileResult(ReconcileOutcome.IN_FLIGHT, record)

        self._in_flight.add(target)
        try:
            result = await self._query(record)
        except BusinessException as exc:
            logger.warning(
                "reconcile_poll_failed",
                record=record.id,
                target=target,
                error_type=exc.error_type,
                error=exc.message,
            )
            return ReconcileResult(ReconcileOutcome.FAILED, record)
        finally:
            self._in_flight.discard(target)

        if self._closed:
            logger.info("reconcile_result_discarded", record=record.id, target=target)
            return ReconcileResult(ReconcileOutcome.DISCARDED, record)

        if not result.succeeded:
            logger.warning("reconcile_poll_rejected", record=record.id, target=target, message=result.raw.get("message"))
            return ReconcileResult(ReconcileOutcome.FAILED, record)

        previous = record.status
        updated = self._ledger.apply_patch(key, result.patch)
        logger.info(
            "reconcile_applied",
            record=record.id,
            target=target,
            previous=previous.value,
            current=updated.status.value if updated else None,
            paid=updated.paid if updated else None,
        )
        self._publish_events()
        return ReconcileResult(ReconcileOutcome.APPLIED, updated)

    async def reconcile_until_settled(
        self,
        key: RecordKey,
        *,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ) -> ReconcileResult:
        """Repeat reconcile() until the record is terminal, attempts run out or the reconciler closes."""
        interval = self._settings.reconcile.interval_seconds if interval is None else interval
        max_attempts = self._settings.reconcile.max_attempts if max_attempts is None else max_attempts

        result = ReconcileResult(ReconcileOutcome.NOT_FOUND, self._ledger.get(key))
        for attempt in range(1, max_attempts + 1):
            if self._closed:
                break
            result = await self.reconcile(key)
            if result.outcome in (ReconcileOutcome.NOT_FOUND, ReconcileOutcome.NO_TARGET):
                break
            if result.record is not None and result.record.is_final_status():
                logger.info("reconcile_settled", record=result.record.id, attempts=attempt, status=result.record.status.value)
                break
            if attempt < max_attempts:
                await asyncio.sleep(interval)
        return result
