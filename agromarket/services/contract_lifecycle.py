# agromarket/services/contract_lifecycle.py
"""
Contract status state machine.

    pending --accept--> active --deliver--> completed
    pending --decline/cancel--> cancelled

``pay`` only flips paymentStatus on an active contract. Completed and
cancelled contracts are terminal.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from agromarket.models.contract_models import Contract

TERMINAL_STATUSES = frozenset({"completed", "cancelled"})


class TransitionError(Exception):
    """Action is not allowed for this actor / contract state."""


class ContractConflict(Exception):
    """The stored contract changed since the caller last read it."""

    def __init__(self, message: str, current: Optional[Contract] = None):
        super().__init__(message)
        self.current = current


@dataclass(frozen=True)
class Transition:
    action: str
    actor: str
    from_status: str
    guard: Callable[[Contract], bool]
    patch: Callable[[datetime], Dict]
    message: str


TRANSITIONS: Dict[str, Transition] = {
    t.action: t for t in (
        Transition(
            action="accept",
            actor="farmer",
            from_status="pending",
            guard=lambda c: True,
            patch=lambda now: {"status": "active"},
            message="The contract has been accepted successfully.",
        ),
        Transition(
            action="decline",
            actor="farmer",
            from_status="pending",
            guard=lambda c: True,
            patch=lambda now: {
                "status": "cancelled",
                "cancelledBy": "farmer",
                "cancellationReason": "Declined by farmer",
            },
            message="The contract has been declined.",
        ),
        Transition(
            action="deliver",
            actor="farmer",
            from_status="active",
            guard=lambda c: True,
            patch=lambda now: {"status": "completed", "deliveredDate": now},
            message="The contract has been marked as delivered.",
        ),
        Transition(
            action="pay",
            actor="buyer",
            from_status="active",
            guard=lambda c: not c.is_paid,
            patch=lambda now: {"paymentStatus": "completed", "paymentDate": now},
            message="Payment has been processed successfully.",
        ),
        Transition(
            action="cancel",
            actor="buyer",
            from_status="pending",
            guard=lambda c: True,
            patch=lambda now: {
                "status": "cancelled",
                "cancelledBy": "buyer",
                "cancellationReason": "Cancelled by buyer",
            },
            message="The contract has been cancelled.",
        ),
    )
}


def is_party(contract: Contract, user_id: str, role: str) -> bool:
    if role == "farmer":
        return contract.farmerId == user_id
    if role == "buyer":
        return contract.buyerId == user_id
    return False


def available_actions(contract: Contract, role: str) -> List[str]:
    """Actions the given role may take on ``contract`` right now."""
    if contract.status in TERMINAL_STATUSES:
        return []
    return [
        t.action for t in TRANSITIONS.values()
        if t.actor == role and t.from_status == contract.status and t.guard(contract)
    ]


def plan_transition(contract: Contract, user_id: str, role: str, action: str, now: datetime) -> Dict:
    """
    Validate ``action`` and return the field patch to write.
    Raises TransitionError when the action is unknown or not allowed.
    """
    t = TRANSITIONS.get(action)
    if t is None:
        raise TransitionError(f"Unknown action '{action}'")
    if not is_party(contract, user_id, role):
        raise TransitionError("You are not a party to this contract")
    if t.actor != role:
        raise TransitionError(f"Only the {t.actor} can {action} a contract")
    if contract.status in TERMINAL_STATUSES:
        raise TransitionError(f"Contract is already {contract.status}")
    if contract.status != t.from_status:
        raise TransitionError(f"Cannot {action} a contract that is {contract.status}")
    if not t.guard(contract):
        raise TransitionError("Payment has already been completed")

    patch = t.patch(now)
    patch["updatedAt"] = now
    return patch


def success_message(action: str) -> str:
    return TRANSITIONS[action].message
