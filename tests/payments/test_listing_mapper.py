from decimal import Decimal

import pytest

from domain.purchase.ledger import PurchaseLedger
from infrastructure.external.payments.mappers import purchase_record_from_wire


@pytest.mark.parametrize("amount", ["sNaN", "NaN", "Infinity", "-inf", float("nan"), "twelve"])
def test_unusable_amount_maps_to_zero(amount):
    record = purchase_record_from_wire({"_id": "x", "amount": amount})
    assert record.amount == Decimal("0")
    assert PurchaseLedger([record]).total_spent() == Decimal("0")


def test_numeric_amount_is_kept():
    record = purchase_record_from_wire({"_id": "x", "amount": "12.75"})
    assert record.amount == Decimal("12.75")
