"""
Partner Intake - Adaptive multi-step registration form

Step 1: Company data
Step 2: Experience and fleet (market dependent)
Step 3: Staff
Step 4: Locations

Which fields are required is decided per step from the market and the
answers given so far; a step can only be left once it validates.
"""

from core.intake.schema import (
    TOTAL_STEPS,
    OTHER_SENTINEL,
    TriState,
    FieldKind,
    ValidationKind,
    Known,
    Other,
    MultiSelect,
    FieldSpec,
    FieldRequirement,
    FIELDS,
    COMPANION_FIELDS,
)
from core.intake.answers import AnswerStore
from core.intake.rules import (
    REQUIREMENT_RULES,
    SUBMIT_CHECK_FIELDS,
    resolve,
    resolve_submit_checks,
)
from core.intake.validation import (
    validate,
    failing_fields,
    missing_fields_message,
)
from core.intake.submission import (
    ANONYMOUS_USER_ID,
    assemble,
    serialize_answers,
)
from core.intake.flow import (
    FlowState,
    InvalidTransitionError,
    StepResult,
    StepStateMachine,
    SubmitSuccess,
    SubmitRejected,
    SubmitFailed,
    SubmitResult,
)
from core.intake.session import (
    DEMO_CONTACT_ID,
    IntakeSession,
)

__all__ = [
    # Schema
    "TOTAL_STEPS",
    "OTHER_SENTINEL",
    "TriState",
    "FieldKind",
    "ValidationKind",
    "Known",
    "Other",
    "MultiSelect",
    "FieldSpec",
    "FieldRequirement",
    "FIELDS",
    "COMPANION_FIELDS",
    # Answers
    "AnswerStore",
    # Requirement rules
    "REQUIREMENT_RULES",
    "SUBMIT_CHECK_FIELDS",
    "resolve",
    "resolve_submit_checks",
    # Validation
    "validate",
    "failing_fields",
    "missing_fields_message",
    # Submission
    "ANONYMOUS_USER_ID",
    "assemble",
    "serialize_answers",
    # Flow
    "FlowState",
    "InvalidTransitionError",
    "StepResult",
    "StepStateMachine",
    "SubmitSuccess",
    "SubmitRejected",
    "SubmitFailed",
    "SubmitResult",
    # Session
    "DEMO_CONTACT_ID",
    "IntakeSession",
]
