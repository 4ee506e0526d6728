import pytest
from pydantic import TypeAdapter

from application.dtos.payments import (
    ImmediateSuccessOutcome,
    InstructionalOutcome,
    OpaqueSuccessOutcome,
    PollableOutcome,
    StatusResult,
    SubmissionOutcome,
    parse_seamless_response,
)
from domain.payment.entity import PurchaseStatus


def test_instructions_take_precedence_over_reference():
    outcome = parse_seamless_response({"paymentInstructions": "Dial *151#", "referenceNumber": "R1"})
    assert isinstance(outcome, InstructionalOutcome)
    assert outcome.instructions == "Dial *151#"
    assert outcome.requires_polling is False


def test_reference_number_is_pollable():
    outcome = parse_seamless_response({"referenceNumber": "R1", "status": "success"})
    assert isinstance(outcome, PollableOutcome)
    assert outcome.reference_number == "R1"
    assert outcome.requires_polling is True


@pytest.mark.parametrize("body", [{"status": "success"}, {"success": True}])
def test_immediate_success(body):
    assert isinstance(parse_seamless_response(body), ImmediateSuccessOutcome)


@pytest.mark.parametrize("body", [{}, {"success": "yes"}, {"unexpected": 1}, None, ["x"]])
def test_unknown_shapes_degrade_to_opaque_success(body):
    assert isinstance(parse_seamless_response(body), OpaqueSuccessOutcome)


def test_outcome_union_discriminates_on_kind():
    outcome = TypeAdapter(SubmissionOutcome).validate_python({"kind": "redirect", "redirect_url": "https://x"})
    assert outcome.kind == "redirect"


def test_status_result_patch_drops_envelope_keys():
    result = StatusResult.from_wire({"success": True, "message": "ok", "status": "paid", "paid": True, "pollUrl": "u"})
    assert result.status is PurchaseStatus.PAID
    assert result.paid is True
    assert result.succeeded is True
    assert result.patch == {"status": "paid", "paid": True, "pollUrl": "u"}


def test_explicit_success_false_is_failed_poll():
    assert StatusResult.from_wire({"success": False, "message": "not found"}).succeeded is False
    assert StatusResult.from_wire({"status": "pending"}).succeeded is True


@pytest.mark.parametrize("body", [None, {}, [], ["paid"], "PAID"])
def test_body_that_is_not_an_object_is_failed_poll(body):
    result = StatusResult.from_wire(body)
    assert result.succeeded is False
    assert result.patch == {}
