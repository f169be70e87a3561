"""
Intake Validation - Missing and invalid field messages

Checks a resolved requirement list against the current answers and returns
human-readable messages, one per failing field, in requirement order. An
empty list means the step may be left. Validation failures are return
values, never exceptions.
"""

from __future__ import annotations

import re
from typing import Callable, Final, Optional

from core.i18n import Translator
from core.intake.answers import AnswerStore
from core.intake.schema import FieldRequirement, TriState, ValidationKind


EMAIL_REGEX: Final = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MINIMUM_PLACEHOLDER: Final[str] = "{minimum}"


# =============================================================================
# Per-kind checks
# =============================================================================

# Each check returns None when satisfied, otherwise the message to report
Check = Callable[[FieldRequirement, AnswerStore], Optional[str]]


def _invalid(req: FieldRequirement, minimum: Optional[int] = None) -> str:
    if not req.invalid_message:
        return req.label
    if minimum is None:
        return req.invalid_message
    return req.invalid_message.replace(MINIMUM_PLACEHOLDER, str(minimum))


def check_text(req: FieldRequirement, answers: AnswerStore) -> Optional[str]:
    if not answers.text(req.field_key).strip():
        return req.label
    return None


def check_email(req: FieldRequirement, answers: AnswerStore) -> Optional[str]:
    value = answers.text(req.field_key).strip()
    if not value:
        return req.label
    if not EMAIL_REGEX.match(value):
        return _invalid(req)
    return None


def check_number(req: FieldRequirement, answers: AnswerStore) -> Optional[str]:
    value = answers.number(req.field_key)
    if value is None:
        return req.label
    if req.minimum_field:
        minimum = answers.number(req.minimum_field)
        if minimum is not None and value < minimum:
            return _invalid(req, minimum)
    return None


def check_multi_select(req: FieldRequirement, answers: AnswerStore) -> Optional[str]:
    if len(answers.selection(req.field_key)) == 0:
        return req.label
    return None


def check_availability(req: FieldRequirement, answers: AnswerStore) -> Optional[str]:
    availability = answers.availability()
    locations = req.options or tuple(availability)
    if not any(availability.get(location) for location in locations):
        return req.label
    return None


def check_tristate(req: FieldRequirement, answers: AnswerStore) -> Optional[str]:
    if answers.tristate(req.field_key) is TriState.UNSET:
        return req.label
    return None


CHECKS: Final[dict[ValidationKind, Check]] = {
    ValidationKind.TEXT: check_text,
    ValidationKind.EMAIL: check_email,
    ValidationKind.NUMBER: check_number,
    ValidationKind.MULTI_SELECT: check_multi_select,
    ValidationKind.AVAILABILITY: check_availability,
    ValidationKind.TRISTATE: check_tristate,
}


# =============================================================================
# Validation
# =============================================================================


def validate(requirements: list[FieldRequirement], answers: AnswerStore) -> list[str]:
    """
    Validate answers against a requirement list.

    Never mutates answers and performs no I/O; identical inputs give
    identical output.

    Args:
        requirements: Output of the requirement resolver
        answers: Current answer record

    Returns:
        Messages for every missing or invalid field (empty if all satisfied)
    """
    messages: list[str] = []
    for req in requirements:
        message = CHECKS[req.kind](req, answers)
        if message is not None:
            messages.append(message)
    return messages


def failing_fields(requirements: list[FieldRequirement], answers: AnswerStore) -> list[str]:
    """Field keys whose requirement is not satisfied."""
    return [
        req.field_key
        for req in requirements
        if CHECKS[req.kind](req, answers) is not None
    ]


def missing_fields_message(messages: list[str], translator: Translator) -> str:
    """Render the single "please fill in: X, Y" line shown to the user."""
    return translator.t("errors.missing_fields", fields=", ".join(messages))
