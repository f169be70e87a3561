"""
Submission Assembler - Builds the record handed to the contact repository

Merges the answer record with the completion metadata. The write itself
is delegated to the caller; assembling has no side effects.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Final, Optional, Union

from core.intake.answers import AnswerStore
from core.intake.schema import (
    COMPANION_FIELDS,
    FIELDS,
    FieldKind,
    MultiSelect,
)
from core.markets.schema import MarketType


# Owner id recorded on contacts created through the public form
ANONYMOUS_USER_ID: Final[str] = "00000000-0000-0000-0000-000000000000"


def _wire_value(key: str, value: Any) -> Any:
    spec = FIELDS[key]
    if spec.kind is FieldKind.TRISTATE:
        return value.to_optional_bool()
    if spec.kind is FieldKind.MULTI_SELECT:
        return value.to_list()
    if spec.kind is FieldKind.AVAILABILITY:
        return dict(value)
    if spec.kind is FieldKind.NUMBER and spec.stored_as_text:
        return "" if value is None else str(value)
    return value


def serialize_answers(answers: AnswerStore) -> dict[str, Any]:
    """
    Owned fields in their stored (JSON) shape.

    Tri-states map UNSET/YES/NO to None/True/False. A multi-select holding
    Other keeps the "other" sentinel in its list and writes the description
    to its companion text field.
    """
    record: dict[str, Any] = {}
    for key, value in answers.snapshot().items():
        record[key] = _wire_value(key, value)

    for select_key, text_key in COMPANION_FIELDS.items():
        selection: MultiSelect = answers.selection(select_key)
        if selection.has_other:
            record[text_key] = selection.other.free_text
    return record


def assemble(
    answers: AnswerStore,
    is_update: bool,
    market_type: Optional[Union[MarketType, str]] = None,
    target_market: Optional[str] = None,
    completed_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Build the persistable contact record.

    Fields of a loaded record that no mutator changed keep their stored
    value (nulls and absent keys included), so an unchanged contact is
    written back as it was read apart from the completion metadata.

    Args:
        answers: Answer record of the session
        is_update: True when the record replaces an existing contact
        market_type: Market type to stamp on the record (if given)
        target_market: Target market to stamp on the record (if given)
        completed_at: Completion time (defaults to now, UTC)

    Returns:
        Record dict for ContactRepository.create / update
    """
    record: dict[str, Any] = answers.extra
    owned = serialize_answers(answers)
    for text_key in COMPANION_FIELDS.values():
        owned.setdefault(text_key, "")

    # A loaded field nobody changed goes back exactly as it was read
    original = answers.original
    for key, value in owned.items():
        if original is None or answers.is_touched(key):
            record[key] = value
        elif key in original:
            record[key] = original[key]

    if market_type is not None:
        record["market_type"] = (
            market_type.value if isinstance(market_type, MarketType) else market_type
        )
    if target_market is not None:
        record["target_market"] = target_market

    if not is_update:
        record.setdefault("user_id", ANONYMOUS_USER_ID)

    record["form_completed"] = True
    record["form_completed_at"] = (completed_at or datetime.utcnow()).isoformat()
    return record
