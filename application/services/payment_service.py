"""
Application service orchestrating purchase use-cases.

This class depends only on the application PurchaseGateway port and DTOs.
Gateway implementations are provided by infrastructure and must be injected
from the composition root (API), keeping dependencies one-way.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Union

from application.dtos.payments import (
    ImmediateSuccessOutcome,
    InstructionalOutcome,
    OpaqueSuccessOutcome,
    PollableOutcome,
    RedirectOutcome,
)
from application.ports.payment_gateway import PurchaseGateway
from application.services.intent_builder import BuiltPurchase
from core.logging_config import get_logger
from domain.purchase.entity import PurchaseIntent, PurchaseRecord
from domain.purchase.ledger import PurchaseLedger


logger = get_logger(__name__)

Outcome = Union[RedirectOutcome, InstructionalOutcome, PollableOutcome, ImmediateSuccessOutcome, OpaqueSuccessOutcome]


def provisional_record(intent: PurchaseIntent, reference_number: str) -> PurchaseRecord:
    """Local stand-in for a purchase the gateway accepted but the listing has not shown yet."""
    now = datetime.now(timezone.utc)
    return PurchaseRecord(
        id=reference_number,
        album_id=intent.album_id,
        plaque_type=intent.plaque_type,
        amount=intent.amount,
        currency=intent.currency_code,
        payment_method=intent.payment_method_code,
        reference_number=reference_number,
        created_at=now,
        updated_at=now,
        customer_phone=intent.phone,
        album={"name": intent.album.name, "artist": intent.album.artist, "image": intent.album.image},
        artist=intent.album.artist or None,
    )


class PurchaseService:
    def __init__(self, gateway: PurchaseGateway, ledger: PurchaseLedger) -> None:
        self.gateway = gateway
        self.ledger = ledger

    async def submit(self, built: BuiltPurchase) -> Outcome:
        """Submit once; failures propagate as GatewayException / GatewayUnreachableException."""
        intent = built.intent
        logger.info(
            "purchase_submit_request",
            path=built.path,
            album_id=intent.album_id,
            method=intent.payment_method_code,
            currency=intent.currency_code,
            amount=str(intent.amount),
        )
        if built.path == "redirect":
            outcome: Outcome = await self.gateway.submit_redirect(built.payload)
        else:
            outcome = await self.gateway.submit_seamless(built.payload)

        if isinstance(outcome, PollableOutcome):
            self.ledger.track(provisional_record(intent, outcome.reference_number))
            for event in self.ledger.clear_events():
                logger.info("purchase_tracked", record=event.record_id, reference_number=event.reference_number)

        logger.info(
            "purchase_submit_response",
            path=built.path,
            album_id=intent.album_id,
            outcome=outcome.kind,
        )
        return outcome

    async def refresh_ledger(self) -> List[PurchaseRecord]:
        """Reload the ledger wholesale from the purchases listing."""
        records = await self.gateway.list_purchases()
        self.ledger.replace_all(records)
        logger.info("purchase_ledger_refreshed", count=len(records), total_spent=str(self.ledger.total_spent()))
        return self.ledger.list()

    async def aclose(self) -> None:
        # Best-effort close underlying resources
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
