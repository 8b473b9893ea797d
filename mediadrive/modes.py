# mediadrive/modes.py - SINGLE SOURCE OF TRUTH for enums and state definitions
"""
All mode enums, state definitions, and outcome types MUST be defined here.
No other module may define these values.

The configuration wizard is a finite-state machine:

    DISPLAY_NAME --NEXT--> SELECT_MASTER --NEXT--> SELECT_BACKUPS --NEXT--> DONE
         ^  |                  |    ^                   |
         |  +--BACK (no-op)    |    +---BACK (clear)----+
         +--------BACK---------+
    any of the three --CANCEL--> CANCELLED

transition() is the complete table; the wizard never moves between steps
any other way.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Tuple


class WizardMode(str, Enum):
    """Whether the wizard creates a new group or edits an existing one."""

    ADD = "add"
    EDIT = "edit"


class WizardStep(Enum):
    DISPLAY_NAME = auto()
    SELECT_MASTER = auto()
    SELECT_BACKUPS = auto()
    DONE = auto()
    CANCELLED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (WizardStep.DONE, WizardStep.CANCELLED)


class WizardAction(Enum):
    """Outcome of handling one step's input."""

    NEXT = auto()
    BACK = auto()
    CANCEL = auto()


class SideEffect(Enum):
    """What the wizard must do to its session when taking a transition."""

    NONE = auto()
    CLEAR_BACKUPS = auto()  # Leaving SELECT_BACKUPS backwards discards its picks
    DISCARD_ALL = auto()  # Cancel: nothing is written
    COMMIT = auto()  # Reached DONE: validate and persist


TRANSITIONS: Dict[Tuple[WizardStep, WizardAction], Tuple[WizardStep, SideEffect]] = {
    (WizardStep.DISPLAY_NAME, WizardAction.NEXT): (WizardStep.SELECT_MASTER, SideEffect.NONE),
    (WizardStep.DISPLAY_NAME, WizardAction.BACK): (WizardStep.DISPLAY_NAME, SideEffect.NONE),
    (WizardStep.DISPLAY_NAME, WizardAction.CANCEL): (WizardStep.CANCELLED, SideEffect.DISCARD_ALL),
    (WizardStep.SELECT_MASTER, WizardAction.NEXT): (WizardStep.SELECT_BACKUPS, SideEffect.NONE),
    (WizardStep.SELECT_MASTER, WizardAction.BACK): (WizardStep.DISPLAY_NAME, SideEffect.NONE),
    (WizardStep.SELECT_MASTER, WizardAction.CANCEL): (WizardStep.CANCELLED, SideEffect.DISCARD_ALL),
    (WizardStep.SELECT_BACKUPS, WizardAction.NEXT): (WizardStep.DONE, SideEffect.COMMIT),
    (WizardStep.SELECT_BACKUPS, WizardAction.BACK): (WizardStep.SELECT_MASTER, SideEffect.CLEAR_BACKUPS),
    (WizardStep.SELECT_BACKUPS, WizardAction.CANCEL): (WizardStep.CANCELLED, SideEffect.DISCARD_ALL),
}


def transition(step: WizardStep, action: WizardAction) -> Tuple[WizardStep, SideEffect]:
    """
    Next step and side effect for an action taken in ``step``.

    Raises:
        ValueError: If ``step`` is terminal (DONE/CANCELLED)
    """
    try:
        return TRANSITIONS[(step, action)]
    except KeyError:
        raise ValueError(f"No transition from {step.name} on {action.name}") from None


class MenuAction(str, Enum):
    """Group manager menu entries."""

    EDIT = "E"
    ADD = "A"
    REMOVE = "R"
    BACK = "B"


@dataclass
class OperationOutcome:
    """
    Result of one group manager operation.

    Use .success for control flow and .message for the status line shown
    to the user.
    """

    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "OperationOutcome":
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, message: str) -> "OperationOutcome":
        return cls(success=False, message=message)

    def __bool__(self) -> bool:
        return self.success
