#!/usr/bin/env python3
"""
Unit tests for the wizard transition table and outcome types.
"""

import pytest

from mediadrive.modes import (
    TRANSITIONS,
    MenuAction,
    OperationOutcome,
    SideEffect,
    WizardAction,
    WizardStep,
    transition,
)


class TestTransition:
    """Tests for transition()."""

    @pytest.mark.parametrize(
        "step, action, expected",
        [
            (WizardStep.DISPLAY_NAME, WizardAction.NEXT, (WizardStep.SELECT_MASTER, SideEffect.NONE)),
            (WizardStep.DISPLAY_NAME, WizardAction.BACK, (WizardStep.DISPLAY_NAME, SideEffect.NONE)),
            (WizardStep.SELECT_MASTER, WizardAction.NEXT, (WizardStep.SELECT_BACKUPS, SideEffect.NONE)),
            (WizardStep.SELECT_MASTER, WizardAction.BACK, (WizardStep.DISPLAY_NAME, SideEffect.NONE)),
            (WizardStep.SELECT_BACKUPS, WizardAction.NEXT, (WizardStep.DONE, SideEffect.COMMIT)),
            (WizardStep.SELECT_BACKUPS, WizardAction.BACK, (WizardStep.SELECT_MASTER, SideEffect.CLEAR_BACKUPS)),
        ],
    )
    def test_table(self, step, action, expected):
        assert transition(step, action) == expected

    @pytest.mark.parametrize(
        "step", [WizardStep.DISPLAY_NAME, WizardStep.SELECT_MASTER, WizardStep.SELECT_BACKUPS]
    )
    def test_cancel_from_any_step(self, step):
        assert transition(step, WizardAction.CANCEL) == (WizardStep.CANCELLED, SideEffect.DISCARD_ALL)

    @pytest.mark.parametrize("step", [WizardStep.DONE, WizardStep.CANCELLED])
    def test_terminal_steps_have_no_transitions(self, step):
        assert step.is_terminal
        with pytest.raises(ValueError):
            transition(step, WizardAction.NEXT)

    def test_table_is_complete_for_active_steps(self):
        active = [s for s in WizardStep if not s.is_terminal]
        assert len(TRANSITIONS) == len(active) * len(WizardAction)


class TestOutcomes:
    """Tests for OperationOutcome and MenuAction."""

    def test_outcome_truthiness(self):
        assert OperationOutcome.ok("saved")
        assert not OperationOutcome.failed("nope")
        assert OperationOutcome.failed("nope").message == "nope"

    def test_menu_letters(self):
        assert [a.value for a in MenuAction] == ["E", "A", "R", "B"]
        assert MenuAction("A") is MenuAction.ADD
