from decimal import Decimal

import pytest

from application.dtos.payments import PurchaseSelection, RedirectPayload, SeamlessPayload
from application.services.intent_builder import PurchaseIntentBuilder, is_valid_phone
from domain.common.exceptions import (
    InvalidAmountException,
    InvalidContactException,
    MissingContactException,
    MissingSelectionException,
    UnsupportedRequiredFieldException,
)
from shared.codes import BusinessCode


def _selection(**overrides) -> PurchaseSelection:
    data = dict(
        currency_code="USD",
        payment_method_id="1",
        payment_option="EcoCash",
        phone="+263771234567",
        support_amount=Decimal("20"),
        album_id="album-1",
        album_name="Kutonga Kwaro",
        album_artist="Jah Prayzah",
    )
    data.update(overrides)
    return PurchaseSelection(**data)


@pytest.fixture
def builder(payment_settings):
    return PurchaseIntentBuilder(payment_settings)


@pytest.fixture
def methods(make_method):
    return [
        make_method("1", code="PZW211", name="EcoCash"),
        make_method("2", code="PZW215", name="Visa", redirect=True, required=()),
    ]


def test_total_with_and_without_shipping(builder):
    assert builder.total_amount(_selection(include_shipping=True)) == Decimal("30")
    assert builder.total_amount(_selection(include_shipping=False)) == Decimal("20")


@pytest.mark.parametrize("phone, valid", [
    ("+263771234567", True),
    ("12345", True),
    ("abc", False),
    ("0771234567", False),
    ("+1", False),
    ("+2\u0666\u0663\u0667\u0667\u0661", False),
    ("1\uff12\uff13\uff14\uff15", False),
    ("+263771234567\n", False),
])
def test_phone_pattern(phone, valid):
    assert is_valid_phone(phone) is valid


def test_missing_selection_comes_first(builder, methods):
    with pytest.raises(MissingSelectionException) as exc_info:
        builder.build(_selection(payment_method_id=None, phone="", support_amount=Decimal("0")), methods)
    assert exc_info.value.code == BusinessCode.PARAM_MISSING


def test_unlisted_method_id_counts_as_unselected(builder, methods):
    with pytest.raises(MissingSelectionException):
        builder.build(_selection(payment_method_id="99"), methods)


def test_option_must_belong_to_method(builder, methods):
    with pytest.raises(MissingSelectionException):
        builder.build(_selection(payment_option="Visa"), methods)


def test_missing_contact_before_invalid_amount(builder, methods):
    with pytest.raises(MissingContactException):
        builder.build(_selection(phone="", support_amount=Decimal("0")), methods)


def test_invalid_contact(builder, methods):
    with pytest.raises(InvalidContactException) as exc_info:
        builder.build(_selection(phone="abc"), methods)
    assert exc_info.value.code == BusinessCode.PARAM_VALIDATION_ERROR
    assert exc_info.value.message == "Please enter a valid phone number"


def test_non_ascii_digits_never_reach_the_payload(builder, methods):
    with pytest.raises(InvalidContactException):
        builder.build(_selection(phone="+263７７１234567"), methods)


def test_non_positive_amount(builder, methods):
    with pytest.raises(InvalidAmountException):
        builder.build(_selection(support_amount=Decimal("0")), methods)


def test_shipping_surcharge_makes_amount_positive(builder, methods):
    built = builder.build(_selection(support_amount=Decimal("0"), include_shipping=True, shipping_address="1 Main St"), methods)
    assert built.intent.amount == Decimal("10.00")


def test_amount_outside_method_bounds(builder, make_method):
    methods = [make_method("1", name="EcoCash", minimum="25", maximum="100")]
    with pytest.raises(InvalidAmountException) as exc_info:
        builder.build(_selection(), methods)
    assert exc_info.value.details["minimum"] == "25"

    built = builder.build(_selection(include_shipping=True), methods)
    assert built.intent.amount == Decimal("30")


def test_redirect_payload_has_no_method_code(builder, methods):
    built = builder.build(_selection(payment_method_id="2", payment_option="Visa"), methods)
    assert built.path == "redirect"
    assert isinstance(built.payload, RedirectPayload)
    wire = built.payload.to_wire()
    assert "paymentMethodCode" not in wire
    assert "requiredFields" not in wire
    assert wire["amount"] == 20.0
    assert wire["albumDetails"] == {"name": "Kutonga Kwaro", "artist": "Jah Prayzah", "image": ""}


def test_seamless_payload_carries_method_code_and_phone_field(builder, methods):
    built = builder.build(_selection(), methods)
    assert built.path == "seamless"
    assert isinstance(built.payload, SeamlessPayload)
    wire = built.payload.to_wire()
    assert wire["paymentMethodCode"] == "PZW211"
    assert wire["requiredFields"] == {"customerPhoneNumber": "+263771234567"}
    assert wire["shippingDetails"] == {"includeShipping": False}
    assert wire["currencyCode"] == "USD"


def test_seamless_shipping_contact_defaults_to_phone(builder, methods):
    built = builder.build(
        _selection(include_shipping=True, shipping_address="1 Main St", delivery_instructions="Gate 2"),
        methods,
    )
    assert built.payload.to_wire()["shippingDetails"] == {
        "includeShipping": True,
        "address": "1 Main St",
        "instructions": "Gate 2",
        "contactNumber": "+263771234567",
    }


def test_unresolvable_required_field_is_rejected(builder, make_method):
    methods = [make_method("1", name="EcoCash", required=("customerPhoneNumber", "nationalId"))]
    with pytest.raises(UnsupportedRequiredFieldException) as exc_info:
        builder.build(_selection(), methods)
    assert exc_info.value.details["fields"] == ["nationalId"]


def test_field_values_resolve_extra_fields_and_optional_is_omitted(builder, make_method):
    methods = [make_method("1", name="EcoCash", required=("nationalId",), optional=("email",))]
    built = builder.build(_selection(field_values={"nationalId": "63-123456X"}), methods)
    assert built.intent.required_fields == {"nationalId": "63-123456X"}


def test_missing_album_id_falls_back_to_generated_id(builder, methods):
    first = builder.build(_selection(album_id=None), methods)
    second = builder.build(_selection(album_id=None), methods)
    assert first.intent.album_id.startswith("mock-album-")
    assert first.intent.album_id != second.intent.album_id


def test_default_plaque_type(builder, methods):
    assert builder.build(_selection(), methods).intent.plaque_type == "Gold"
    assert builder.build(_selection(plaque_type="Platinum"), methods).intent.plaque_type == "Platinum"
