"""
Plaque purchase API routes.

Thin host over the purchase engine: currency and method discovery, purchase
submission, the purchases ledger, status reconciliation and support links.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import find_purchase_account, get_purchase_account, get_purchase_session
from application.dtos.payments import (
    CurrencyView,
    InstructionalOutcome,
    PaymentMethodView,
    PollableOutcome,
    PurchaseRecordView,
    PurchaseSelection,
    RedirectOutcome,
    SubmissionView,
    SupportLinkView,
)
from application.services.account_registry import PurchaseAccount
from application.services.intent_builder import BuiltPurchase
from application.services.purchase_session import PurchaseSession
from application.services.support_channel import OrderSummary, SupportChannel, SupportLink
from core.logging_config import get_logger
from core.response import success_response
from domain.common.exceptions import PurchaseNotFoundException
from domain.purchase.entity import RecordKey


router = APIRouter(prefix="/plaques", tags=["Plaques"])
logger = get_logger(__name__)

SUBMITTED_MESSAGE = "Payment initiated successfully! Please check your payment method for confirmation."


def _order_summary(selection: PurchaseSelection, total: Decimal) -> OrderSummary:
    return OrderSummary(
        album_name=selection.album_name,
        album_artist=selection.album_artist,
        currency_code=selection.currency_code.strip().upper(),
        amount=total,
        shipping_address=selection.shipping_address if selection.include_shipping else None,
    )


def _link_view(link: SupportLink) -> SupportLinkView:
    return SupportLinkView(url=link.url, message=link.message, invoice_number=link.invoice_number)


@router.get("/currencies")
async def list_currencies(session: PurchaseSession = Depends(get_purchase_session)):
    listing = await session.load_currencies()
    return success_response(data={
        "currencies": [CurrencyView.from_entity(c).to_wire() for c in listing.currencies],
        "defaultCurrency": listing.default_code,
    })


@router.get("/payment-methods")
async def list_payment_methods(
    currency_code: str = Query(..., alias="currencyCode", min_length=1),
    session: PurchaseSession = Depends(get_purchase_session),
):
    methods = await session.select_currency(currency_code)
    return success_response(data={
        "currencyCode": session.selected_currency,
        "methods": [PaymentMethodView.from_entity(m).to_wire() for m in methods],
    })


@router.post("/purchases")
async def create_purchase(
    selection: PurchaseSelection,
    session: PurchaseSession = Depends(get_purchase_session),
    account: PurchaseAccount = Depends(get_purchase_account),
):
    await session.select_currency(selection.currency_code)
    built: BuiltPurchase = session.build(selection)
    outcome = await account.service.submit(built)

    view = SubmissionView(kind=outcome.kind)
    if isinstance(outcome, RedirectOutcome):
        view.redirect_url = outcome.redirect_url
    elif isinstance(outcome, InstructionalOutcome):
        link = SupportChannel().payment_instructions(
            _order_summary(selection, built.intent.amount),
            instructions=outcome.instructions,
            method_name=built.method.name,
        )
        view.instructions = outcome.instructions
        view.support_link = _link_view(link)
    elif isinstance(outcome, PollableOutcome):
        # One immediate status check; later checks go through the reconcile route
        result = await account.reconciler.reconcile(RecordKey(id=outcome.reference_number))
        view.reference_number = outcome.reference_number
        if result.record is not None:
            view.record = PurchaseRecordView.from_entity(result.record)
    else:
        view.message = SUBMITTED_MESSAGE

    return success_response(data=view.to_wire())


@router.get("/purchases")
async def list_purchases(account: PurchaseAccount = Depends(get_purchase_account)):
    records = await account.service.refresh_ledger()
    return success_response(data={
        "records": [PurchaseRecordView.from_entity(r).to_wire() for r in records],
        "totalSpent": float(account.ledger.total_spent()),
    })


@router.post("/purchases/{record_id}/reconcile")
async def reconcile_purchase(record_id: str, account: Optional[PurchaseAccount] = Depends(find_purchase_account)):
    key = RecordKey(id=record_id, gateway_id=record_id)
    if account is None or account.ledger.get(key) is None:
        raise PurchaseNotFoundException(record_id)

    result = await account.reconciler.reconcile(key)
    return success_response(data={
        "outcome": result.outcome.value,
        "ignored": result.ignored,
        "record": PurchaseRecordView.from_entity(result.record).to_wire() if result.record else None,
    })


@router.post("/support/cash-pickup")
async def cash_pickup_link(
    selection: PurchaseSelection,
    session: PurchaseSession = Depends(get_purchase_session),
):
    link = SupportChannel().cash_pickup(_order_summary(selection, session.total_amount(selection)))
    logger.info("support_link_created", kind="cash_pickup", invoice=link.invoice_number)
    return success_response(data=_link_view(link).to_wire())


@router.post("/support/other-method")
async def other_method_link(
    selection: PurchaseSelection,
    session: PurchaseSession = Depends(get_purchase_session),
):
    link = SupportChannel().other_method(_order_summary(selection, session.total_amount(selection)))
    logger.info("support_link_created", kind="other_method", invoice=link.invoice_number)
    return success_response(data=_link_view(link).to_wire())
