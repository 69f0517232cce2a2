"""Unit tests for the reservation workflow state machine."""

import pytest

from festival_booking.utils.exceptions import IllegalTransition
from festival_booking.workflow import (
    INITIAL_STATUS,
    TERMINAL_STATUSES,
    TransitionTrigger,
    WorkflowStatus,
    allowed_targets,
    ensure_transition,
    is_terminal,
    trigger_for_direct_update,
)


class TestWorkflowTable:
    def test_initial_status_is_present(self):
        assert INITIAL_STATUS == WorkflowStatus.PRESENT

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {WorkflowStatus.FACTURE_PAYEE, WorkflowStatus.ANNULEE}
        assert is_terminal("annulée")
        assert not is_terminal(WorkflowStatus.FACTURE)

    def test_allowed_targets(self):
        assert set(allowed_targets(WorkflowStatus.PRESENT)) == {WorkflowStatus.FACTURE, WorkflowStatus.ANNULEE}
        assert set(allowed_targets(WorkflowStatus.FACTURE)) == {
            WorkflowStatus.FACTURE_PAYEE,
            WorkflowStatus.ANNULEE,
        }
        assert allowed_targets(WorkflowStatus.FACTURE_PAYEE) == []
        assert allowed_targets(WorkflowStatus.ANNULEE) == []

    @pytest.mark.parametrize(
        "current, target, trigger",
        [
            (WorkflowStatus.PRESENT, WorkflowStatus.FACTURE, TransitionTrigger.INVOICE_ISSUED),
            (WorkflowStatus.FACTURE, WorkflowStatus.FACTURE_PAYEE, TransitionTrigger.INVOICE_PAID),
            (WorkflowStatus.PRESENT, WorkflowStatus.ANNULEE, TransitionTrigger.CANCELLATION),
            (WorkflowStatus.FACTURE, WorkflowStatus.ANNULEE, TransitionTrigger.CANCELLATION),
        ],
    )
    def test_legal_transitions(self, current, target, trigger):
        transition = ensure_transition(current, target, trigger)
        assert transition.source == current
        assert transition.target == target

    @pytest.mark.parametrize("terminal", [WorkflowStatus.FACTURE_PAYEE, WorkflowStatus.ANNULEE])
    @pytest.mark.parametrize("target", list(WorkflowStatus))
    def test_nothing_leaves_a_terminal_state(self, terminal, target):
        for trigger in [*TransitionTrigger, None]:
            with pytest.raises(IllegalTransition):
                ensure_transition(terminal, target, trigger)

    @pytest.mark.parametrize("status", list(WorkflowStatus))
    def test_self_transitions_are_rejected(self, status):
        with pytest.raises(IllegalTransition):
            ensure_transition(status, status, trigger_for_direct_update(status))

    def test_skipping_the_invoice_is_rejected(self):
        with pytest.raises(IllegalTransition):
            ensure_transition(WorkflowStatus.PRESENT, WorkflowStatus.FACTURE_PAYEE, TransitionTrigger.INVOICE_PAID)

    def test_going_back_is_rejected(self):
        with pytest.raises(IllegalTransition):
            ensure_transition(WorkflowStatus.FACTURE, WorkflowStatus.PRESENT, None)

    def test_transition_without_its_trigger_is_rejected(self):
        # Given: a direct status edit asking for facture
        trigger = trigger_for_direct_update(WorkflowStatus.FACTURE)

        # Then: the edit does not hold the invoice trigger
        assert trigger is None
        with pytest.raises(IllegalTransition, match="requires invoice_issued"):
            ensure_transition(WorkflowStatus.PRESENT, WorkflowStatus.FACTURE, trigger)

    def test_direct_update_may_cancel(self):
        trigger = trigger_for_direct_update(WorkflowStatus.ANNULEE)
        assert trigger == TransitionTrigger.CANCELLATION
        assert ensure_transition("present", "annulée", trigger).target == WorkflowStatus.ANNULEE

    def test_rejection_names_the_reachable_statuses(self):
        with pytest.raises(IllegalTransition) as exc_info:
            ensure_transition(WorkflowStatus.PRESENT, WorkflowStatus.FACTURE_PAYEE, TransitionTrigger.INVOICE_PAID)

        assert "present can move to facture, annulée" in exc_info.value.message
