"""
Step State Machine - Navigation through the intake steps

States: Step(1..N) -> Summary -> Submitted (terminal).

Moving forward is gated by validation of the current step; moving back is
unconditional. Submission is only possible from the summary, re-validates
the final step, and leaves the machine on the summary if the write fails
so the same submit can be retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Union

from core.contacts.repository import ContactNotFoundError, ContactRepositoryError
from core.i18n import Translator
from core.intake.answers import AnswerStore
from core.intake.rules import resolve, resolve_submit_checks
from core.intake.schema import TOTAL_STEPS, FieldRequirement
from core.intake.submission import assemble
from core.intake.validation import failing_fields, validate
from core.markets.schema import MarketConfig
from core.tracking import REGISTRATION_COMPLETED, STEP_VIEWED, EventEmitter, emit_safely


logger = logging.getLogger(__name__)


# =============================================================================
# States and errors
# =============================================================================


class FlowState(Enum):
    """Where the session is in the form."""

    STEP = "step"
    SUMMARY = "summary"
    SUBMITTED = "submitted"


class InvalidTransitionError(Exception):
    """Raised when a transition is not allowed from the current state."""

    def __init__(self, action: str, state: FlowState):
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} from state {state.value}")


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class StepResult:
    """Outcome of a next / previous transition."""

    advanced: bool
    state: FlowState
    step: int
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class SubmitSuccess:
    """Returned when the record was written."""

    contact_id: Optional[str]
    record: dict[str, Any] = field(hash=False)


@dataclass(frozen=True)
class SubmitRejected:
    """Returned when the final safety validation fails."""

    errors: tuple[str, ...]


@dataclass(frozen=True)
class SubmitFailed:
    """Returned when the repository write fails; nothing was written."""

    reason: str
    retryable: bool = True


SubmitResult = Union[SubmitSuccess, SubmitRejected, SubmitFailed]

# Writes the assembled record and returns the contact id
RecordWriter = Callable[[dict[str, Any]], Optional[str]]


# =============================================================================
# State Machine
# =============================================================================


class StepStateMachine:
    """
    Navigation state of one intake session.

    Usage:
        machine = StepStateMachine(config, answers)
        result = machine.next()
        if not result.advanced:
            show(result.errors)
    """

    def __init__(
        self,
        config: MarketConfig,
        answers: AnswerStore,
        translator: Optional[Translator] = None,
        emitter: Optional[EventEmitter] = None,
        is_update: bool = False,
        total_steps: int = TOTAL_STEPS,
    ):
        if total_steps < 1:
            raise ValueError("total_steps must be at least 1")
        self.config = config
        self.answers = answers
        self.translator = translator or Translator(config.language)
        self.emitter = emitter
        self.is_update = is_update
        self.total_steps = total_steps
        self._state = FlowState.STEP
        self._step = 1

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def current_step(self) -> int:
        return self._step

    @property
    def show_summary(self) -> bool:
        return self._state is FlowState.SUMMARY

    @property
    def is_submitted(self) -> bool:
        return self._state is FlowState.SUBMITTED

    @property
    def progress_percent(self) -> int:
        if self._state is not FlowState.STEP:
            return 100
        return round(self._step / self.total_steps * 100)

    def requirements_for(self, step: int) -> list[FieldRequirement]:
        return resolve(
            step,
            self.config.market_type,
            self.config.target_market,
            self.answers,
            config=self.config,
            translator=self.translator,
        )

    def current_requirements(self) -> list[FieldRequirement]:
        return self.requirements_for(self._step)

    def current_errors(self) -> list[str]:
        return validate(self.current_requirements(), self.answers)

    @property
    def can_proceed(self) -> bool:
        return self._state is FlowState.STEP and not self.current_errors()

    def field_has_error(self, field_key: str) -> bool:
        """Whether a field of the current step currently fails validation."""
        return field_key in failing_fields(self.current_requirements(), self.answers)

    # =========================================================================
    # Transitions
    # =========================================================================

    def _require(self, action: str, *allowed: FlowState) -> None:
        if self._state not in allowed:
            raise InvalidTransitionError(action, self._state)

    def next(self) -> StepResult:
        """
        Leave the current step if it validates.

        Raises:
            InvalidTransitionError: Outside the step states
        """
        self._require("go to next step", FlowState.STEP)
        errors = self.current_errors()
        if errors:
            logger.info(
                "Step %d blocked for %s/%s: %s",
                self._step,
                self.config.market_type.value,
                self.config.target_market,
                errors,
            )
            return StepResult(False, self._state, self._step, tuple(errors))

        if self._step < self.total_steps:
            self._step += 1
            self._track_step()
        else:
            self._state = FlowState.SUMMARY
        return StepResult(True, self._state, self._step)

    def previous(self) -> StepResult:
        """
        Go back one step (or from the summary to the last step).

        Never re-validates. On the first step this is a no-op.

        Raises:
            InvalidTransitionError: After submission
        """
        self._require("go to previous step", FlowState.STEP, FlowState.SUMMARY)
        if self._state is FlowState.SUMMARY:
            self._state = FlowState.STEP
            return StepResult(True, self._state, self._step)
        if self._step == 1:
            return StepResult(False, self._state, self._step)
        self._step -= 1
        self._track_step()
        return StepResult(True, self._state, self._step)

    def submit(self, writer: RecordWriter, completed_at: Optional[datetime] = None) -> SubmitResult:
        """
        Submit the form from the summary.

        Re-validates the final step and the identity fields, assembles the
        record and hands it to ``writer``.

        Returns:
            SubmitSuccess after a successful write (state becomes SUBMITTED)
            SubmitRejected if the safety validation fails
            SubmitFailed if the write fails (state stays SUMMARY)

        Raises:
            InvalidTransitionError: Outside the summary
        """
        self._require("submit", FlowState.SUMMARY)

        errors = validate(self.requirements_for(self.total_steps), self.answers)
        check_errors = validate(
            resolve_submit_checks(
                self.config.market_type,
                self.config.target_market,
                self.answers,
                config=self.config,
                translator=self.translator,
            ),
            self.answers,
        )
        errors.extend(e for e in check_errors if e not in errors)
        if errors:
            return SubmitRejected(tuple(errors))

        record = assemble(
            self.answers,
            is_update=self.is_update,
            market_type=self.config.market_type,
            target_market=self.config.target_market,
            completed_at=completed_at,
        )

        try:
            contact_id = writer(record)
        except ContactNotFoundError as e:
            logger.error("Submit failed, contact vanished: %s", e)
            return SubmitFailed(reason=str(e), retryable=False)
        except ContactRepositoryError as e:
            logger.error("Submit failed, record not written: %s", e)
            return SubmitFailed(reason=str(e), retryable=True)

        self._state = FlowState.SUBMITTED
        logger.info(
            "Intake submitted for %s/%s (contact %s)",
            self.config.market_type.value,
            self.config.target_market,
            contact_id,
        )
        company_name = self.answers.text("company_name")
        emit_safely(self.emitter, REGISTRATION_COMPLETED, {
            "content_name": f"Partner Registration - {company_name}",
            "content_category": "partner_registration",
            "value": 1,
            "market_type": self.config.market_type.value,
            "target_market": self.config.target_market,
            "company_name": company_name,
        })
        return SubmitSuccess(contact_id=contact_id, record=record)

    def _track_step(self) -> None:
        if self._step <= 1:
            return
        emit_safely(self.emitter, STEP_VIEWED, {
            "content_name": f"Step {self._step} - {self.config.market_type.value}",
            "content_category": "form_step",
            "value": self._step,
        })

    def to_dict(self) -> dict[str, Any]:
        """Navigation state for API responses."""
        return {
            "state": self._state.value,
            "current_step": self._step,
            "total_steps": self.total_steps,
            "show_summary": self.show_summary,
            "submitted": self.is_submitted,
            "progress_percent": self.progress_percent,
        }
