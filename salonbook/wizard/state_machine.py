"""
Finite state machine for the booking wizard's step order.

Steps run strictly forward, Branch -> Service -> Duration -> Provider ->
DateTime -> ContactInfo -> Confirmation, with Duration skipped when a
service has a single (duration, price) option. "Back" always returns to
the immediately preceding step; nothing may be skipped.

Usage:
    sm = WizardStateMachine()
    sm.transition(WizardEvent.BRANCH_SELECTED)
    assert sm.current_state == WizardStep.SERVICE
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    """All steps of the booking wizard, in forward order."""
    BRANCH = "branch"
    SERVICE = "service"
    DURATION = "duration"
    PROVIDER = "provider"
    DATE_TIME = "date_time"
    CONTACT_INFO = "contact_info"
    CONFIRMATION = "confirmation"


class WizardEvent(str, Enum):
    """Events that cause step transitions."""
    BRANCH_SELECTED = "branch_selected"
    SERVICE_SELECTED = "service_selected"
    SINGLE_OPTION_SERVICE_SELECTED = "single_option_service_selected"
    DURATION_SELECTED = "duration_selected"
    PROVIDER_SELECTED = "provider_selected"
    DATE_CHANGED = "date_changed"
    SLOT_ACCEPTED = "slot_accepted"
    BOOKING_COMMITTED = "booking_committed"
    SLOT_CONFLICT = "slot_conflict"
    BACK = "back"
    RESTART = "restart"
    RESUMED = "resumed"


Guard = Callable[["WizardStateMachine"], bool]


def _duration_was_chosen(sm: "WizardStateMachine") -> bool:
    return not sm.duration_skipped


def _duration_was_skipped(sm: "WizardStateMachine") -> bool:
    return sm.duration_skipped


@dataclass
class Transition:
    """A single valid step transition."""
    from_state: WizardStep
    to_state: WizardStep
    trigger: WizardEvent
    guard: Optional[Guard] = None


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    state: WizardStep
    entered_at: datetime
    trigger: Optional[WizardEvent] = None


class InvalidTransitionError(Exception):
    """Raised when an event is not valid from the current step."""


class WizardStateMachine:
    """
    Explicit transition table for the booking wizard.

    The current step is never inferred from which draft fields happen to
    be filled; every move goes through ``transition`` and anything not in
    the table is rejected.
    """

    TRANSITIONS: list[Transition] = [
        # --- Forward ---
        Transition(WizardStep.BRANCH, WizardStep.SERVICE, WizardEvent.BRANCH_SELECTED),
        Transition(WizardStep.SERVICE, WizardStep.DURATION, WizardEvent.SERVICE_SELECTED),
        Transition(WizardStep.SERVICE, WizardStep.PROVIDER,
                   WizardEvent.SINGLE_OPTION_SERVICE_SELECTED),
        Transition(WizardStep.DURATION, WizardStep.PROVIDER, WizardEvent.DURATION_SELECTED),
        Transition(WizardStep.PROVIDER, WizardStep.DATE_TIME, WizardEvent.PROVIDER_SELECTED),
        Transition(WizardStep.DATE_TIME, WizardStep.DATE_TIME, WizardEvent.DATE_CHANGED),
        Transition(WizardStep.DATE_TIME, WizardStep.CONTACT_INFO, WizardEvent.SLOT_ACCEPTED),
        Transition(WizardStep.CONTACT_INFO, WizardStep.CONFIRMATION,
                   WizardEvent.BOOKING_COMMITTED),

        # --- Late conflict sends the visitor back to pick another slot ---
        Transition(WizardStep.CONTACT_INFO, WizardStep.DATE_TIME, WizardEvent.SLOT_CONFLICT),

        # --- Back ---
        Transition(WizardStep.SERVICE, WizardStep.BRANCH, WizardEvent.BACK),
        Transition(WizardStep.DURATION, WizardStep.SERVICE, WizardEvent.BACK),
        Transition(WizardStep.PROVIDER, WizardStep.DURATION, WizardEvent.BACK,
                   guard=_duration_was_chosen),
        Transition(WizardStep.PROVIDER, WizardStep.SERVICE, WizardEvent.BACK,
                   guard=_duration_was_skipped),
        Transition(WizardStep.DATE_TIME, WizardStep.PROVIDER, WizardEvent.BACK),
        Transition(WizardStep.CONTACT_INFO, WizardStep.DATE_TIME, WizardEvent.BACK),
    ] + [
        # --- Restart is always possible ---
        Transition(step, WizardStep.BRANCH, WizardEvent.RESTART) for step in WizardStep
    ]

    def __init__(self) -> None:
        self._current_state = WizardStep.BRANCH
        self._history: list[StepEntry] = [
            StepEntry(state=WizardStep.BRANCH, entered_at=datetime.now(timezone.utc))
        ]
        self.duration_skipped = False

    @property
    def current_state(self) -> WizardStep:
        return self._current_state

    def _find(self, trigger: WizardEvent) -> Optional[Transition]:
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                if t.guard is not None and not t.guard(self):
                    continue
                return t
        return None

    def can_transition(self, trigger: WizardEvent) -> bool:
        return self._find(trigger) is not None

    def check(self, trigger: WizardEvent) -> None:
        """Raise InvalidTransitionError unless ``trigger`` is allowed right now."""
        if not self.can_transition(trigger):
            valid = [t.value for t in self.get_valid_triggers()]
            raise InvalidTransitionError(
                f"No valid transition from '{self._current_state.value}' "
                f"with trigger '{trigger.value}'. Valid triggers: {valid}"
            )

    def transition(self, trigger: WizardEvent) -> WizardStep:
        """
        Execute a step transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new wizard step.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        self.check(trigger)
        t = self._find(trigger)

        old_state = self._current_state
        self._current_state = t.to_state
        if trigger == WizardEvent.SINGLE_OPTION_SERVICE_SELECTED:
            self.duration_skipped = True
        elif trigger in (WizardEvent.SERVICE_SELECTED, WizardEvent.RESTART):
            self.duration_skipped = False

        self._history.append(StepEntry(
            state=self._current_state,
            entered_at=datetime.now(timezone.utc),
            trigger=trigger,
        ))

        logger.debug(
            "Step transition: %s -> %s (trigger: %s)",
            old_state.value, self._current_state.value, trigger.value,
        )
        return self._current_state

    def resume(self, step: WizardStep, duration_skipped: bool = False) -> WizardStep:
        """Jump straight to ``step`` when rebuilding from a saved draft or deep link.

        Only allowed before any other transition has happened.

        Raises:
            InvalidTransitionError: If the wizard has already moved.
        """
        if self._current_state != WizardStep.BRANCH or len(self._history) != 1:
            raise InvalidTransitionError(
                f"Cannot resume at '{step.value}' after the wizard has started"
            )
        self._current_state = step
        self.duration_skipped = duration_skipped
        self._history.append(StepEntry(
            state=step,
            entered_at=datetime.now(timezone.utc),
            trigger=WizardEvent.RESUMED,
        ))
        logger.debug("Wizard resumed at %s", step.value)
        return step

    def get_valid_triggers(self) -> list[WizardEvent]:
        """Return all triggers valid from the current step."""
        return [
            t.trigger for t in self.TRANSITIONS
            if t.from_state == self._current_state and (t.guard is None or t.guard(self))
        ]

    def get_history(self) -> list[StepEntry]:
        """Return the full step transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the wizard has reached its terminal step."""
        return self._current_state == WizardStep.CONFIRMATION
