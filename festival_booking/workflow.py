"""Reservation workflow state machine.

States::

    present --(invoice issued)--> facture --(invoice paid)--> facture_payee
       |                             |
       +-------(cancellation)--------+------> annulée

``facture_payee`` and ``annulée`` are terminal. Both the reservation
repository (direct status edits) and the invoice repository (invoice driven
moves) go through :func:`ensure_transition`, so the two can never disagree
about what is legal.
"""

from dataclasses import dataclass
from enum import Enum

from festival_booking.utils.exceptions import IllegalTransition


class WorkflowStatus(str, Enum):
    PRESENT = "present"
    FACTURE = "facture"
    FACTURE_PAYEE = "facture_payee"
    ANNULEE = "annulée"


class InvoiceStatus(str, Enum):
    ISSUED = "issued"
    PAID = "paid"


class TransitionTrigger(str, Enum):
    INVOICE_ISSUED = "invoice_issued"
    INVOICE_PAID = "invoice_paid"
    CANCELLATION = "cancellation"


@dataclass(frozen=True)
class Transition:
    source: WorkflowStatus
    target: WorkflowStatus
    trigger: TransitionTrigger


INITIAL_STATUS = WorkflowStatus.PRESENT

TRANSITIONS: dict[tuple[WorkflowStatus, WorkflowStatus], Transition] = {
    (t.source, t.target): t
    for t in (
        Transition(WorkflowStatus.PRESENT, WorkflowStatus.FACTURE, TransitionTrigger.INVOICE_ISSUED),
        Transition(WorkflowStatus.FACTURE, WorkflowStatus.FACTURE_PAYEE, TransitionTrigger.INVOICE_PAID),
        Transition(WorkflowStatus.PRESENT, WorkflowStatus.ANNULEE, TransitionTrigger.CANCELLATION),
        Transition(WorkflowStatus.FACTURE, WorkflowStatus.ANNULEE, TransitionTrigger.CANCELLATION),
    )
}

TERMINAL_STATUSES = frozenset(
    status for status in WorkflowStatus
    if not any(source == status for source, _ in TRANSITIONS)
)

# Statuses from which an invoice may be marked paid
PAYABLE_STATUSES = frozenset({WorkflowStatus.FACTURE, WorkflowStatus.FACTURE_PAYEE})


def is_terminal(status: WorkflowStatus) -> bool:
    return WorkflowStatus(status) in TERMINAL_STATUSES


def allowed_targets(status: WorkflowStatus) -> list[WorkflowStatus]:
    return [target for source, target in TRANSITIONS if source == WorkflowStatus(status)]


def ensure_transition(
    current: WorkflowStatus,
    target: WorkflowStatus,
    trigger: TransitionTrigger | None,
) -> Transition:
    """Return the transition from ``current`` to ``target`` or raise IllegalTransition.

    A transition listed in the table is still rejected when the caller does not
    hold the trigger it requires, e.g. moving to ``facture`` without issuing an
    invoice.
    """
    current = WorkflowStatus(current)
    target = WorkflowStatus(target)

    transition = TRANSITIONS.get((current, target))
    if transition is None:
        if is_terminal(current):
            raise IllegalTransition(f"Reservation is {current.value}; no further transition is allowed")
        allowed = ", ".join(status.value for status in allowed_targets(current))
        raise IllegalTransition(
            f"Transition {current.value} -> {target.value} is not allowed; {current.value} can move to {allowed}"
        )

    if transition.trigger != trigger:
        raise IllegalTransition(
            f"Transition {current.value} -> {target.value} requires {transition.trigger.value}"
        )
    return transition


def trigger_for_direct_update(target: WorkflowStatus) -> TransitionTrigger | None:
    """Trigger held by a plain status edit: only cancellation can be requested directly."""
    if WorkflowStatus(target) == WorkflowStatus.ANNULEE:
        return TransitionTrigger.CANCELLATION
    return None
