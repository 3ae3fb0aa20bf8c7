from datetime import datetime, timezone

import pytest

from agromarket.models.contract_models import Contract
from agromarket.services.contract_lifecycle import (
    TransitionError,
    available_actions,
    is_party,
    plan_transition,
    success_message,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_contract(**kw):
    data = {
        "id": "c1",
        "cropName": "Organic Tomatoes",
        "farmerId": "FRM1",
        "farmerName": "Rajesh Kumar",
        "buyerId": "BUY1",
        "buyerName": "Bina",
        "quantity": 10,
        "price": 25,
        "status": "pending",
        "paymentStatus": "pending",
    }
    data.update(kw)
    return Contract(**data)


def test_total_value_is_quantity_times_price():
    assert make_contract().total_value == 250


@pytest.mark.parametrize(
    "status,payment,role,expected",
    [
        ("pending", "pending", "farmer", ["accept", "decline"]),
        ("pending", "pending", "buyer", ["cancel"]),
        ("active", "pending", "farmer", ["deliver"]),
        ("active", "pending", "buyer", ["pay"]),
        ("active", "completed", "buyer", []),
        ("completed", "completed", "farmer", []),
        ("cancelled", "pending", "buyer", []),
    ],
)
def test_available_actions(status, payment, role, expected):
    c = make_contract(status=status, paymentStatus=payment)
    assert available_actions(c, role) == expected


def test_accept_moves_pending_to_active():
    patch = plan_transition(make_contract(), "FRM1", "farmer", "accept", NOW)
    assert patch == {"status": "active", "updatedAt": NOW}


def test_decline_records_farmer_as_canceller():
    patch = plan_transition(make_contract(), "FRM1", "farmer", "decline", NOW)
    assert patch["status"] == "cancelled"
    assert patch["cancelledBy"] == "farmer"


def test_cancel_records_buyer_reason():
    patch = plan_transition(make_contract(), "BUY1", "buyer", "cancel", NOW)
    assert patch["cancelledBy"] == "buyer"
    assert patch["cancellationReason"] == "Cancelled by buyer"


def test_pay_only_touches_payment_fields():
    patch = plan_transition(make_contract(status="active"), "BUY1", "buyer", "pay", NOW)
    assert "status" not in patch
    assert patch["paymentStatus"] == "completed"
    assert patch["paymentDate"] == NOW


def test_deliver_sets_delivered_date():
    patch = plan_transition(make_contract(status="active"), "FRM1", "farmer", "deliver", NOW)
    assert patch["status"] == "completed"
    assert patch["deliveredDate"] == NOW


def test_pay_twice_is_rejected():
    c = make_contract(status="active", paymentStatus="completed")
    with pytest.raises(TransitionError, match="already been completed"):
        plan_transition(c, "BUY1", "buyer", "pay", NOW)


def test_buyer_cannot_accept():
    with pytest.raises(TransitionError, match="Only the farmer"):
        plan_transition(make_contract(), "BUY1", "buyer", "accept", NOW)


def test_outsider_cannot_act():
    with pytest.raises(TransitionError, match="not a party"):
        plan_transition(make_contract(), "FRM9", "farmer", "accept", NOW)


@pytest.mark.parametrize("status", ["completed", "cancelled"])
@pytest.mark.parametrize("action,user,role", [
    ("accept", "FRM1", "farmer"),
    ("decline", "FRM1", "farmer"),
    ("deliver", "FRM1", "farmer"),
    ("pay", "BUY1", "buyer"),
    ("cancel", "BUY1", "buyer"),
])
def test_terminal_contracts_reject_every_action(status, action, user, role):
    with pytest.raises(TransitionError, match="already"):
        plan_transition(make_contract(status=status), user, role, action, NOW)


def test_active_contract_cannot_be_cancelled():
    with pytest.raises(TransitionError, match="Cannot cancel a contract that is active"):
        plan_transition(make_contract(status="active"), "BUY1", "buyer", "cancel", NOW)


def test_unknown_action():
    with pytest.raises(TransitionError, match="Unknown action"):
        plan_transition(make_contract(), "FRM1", "farmer", "archive", NOW)


def test_is_party_checks_the_role_side():
    c = make_contract()
    assert is_party(c, "FRM1", "farmer")
    assert not is_party(c, "FRM1", "buyer")
    assert is_party(c, "BUY1", "buyer")


def test_success_messages():
    assert success_message("accept") == "The contract has been accepted successfully."
    assert success_message("pay") == "Payment has been processed successfully."
