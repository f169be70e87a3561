"""
Answer Store - The in-progress answer record of one intake session

The answer record is created empty (new contact) or pre-filled from a
stored contact (edit / resume). It changes only through the mutators on
AnswerStore; everything else reads it.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional, Union

from core.intake.schema import (
    COMPANION_FIELDS,
    COMPANION_TEXT_FIELDS,
    FIELDS,
    FieldKind,
    FieldSpec,
    MultiSelect,
    OTHER_SENTINEL,
    TriState,
)


logger = logging.getLogger(__name__)

_DEFAULTS = {
    FieldKind.TEXT: "",
    FieldKind.NUMBER: None,
    FieldKind.TRISTATE: TriState.UNSET,
    FieldKind.FLAG: False,
    FieldKind.MULTI_SELECT: MultiSelect(),
}

# Companion text field -> the multi-select that owns it
_COMPANION_OWNERS = {text_key: select_key for select_key, text_key in COMPANION_FIELDS.items()}


def _parse_number(key: str, value: Union[int, str, None]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = int(value.strip())
        except ValueError:
            raise ValueError(f"{key} must be a whole number: {value!r}") from None
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{key} must be a whole number: {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"{key} cannot be negative")
    return value


def _load_number(value: Any) -> Optional[int]:
    # Stored numbers can be free text (the experience year column is text)
    try:
        return _parse_number("", value)
    except ValueError:
        return None


class AnswerStore:
    """
    Mutable answer record for one form session.

    Usage:
        answers = AnswerStore()
        answers.set_text("company_name", "Muster Logistik GmbH")
        answers.set_tristate("is_last_mile_logistics", TriState.YES)
        answers.toggle_item("staff_types", "Vollzeit")
        answers.toggle_availability("Mitte")
    """

    def __init__(self):
        self._values: dict[str, Any] = {}
        for key, spec in FIELDS.items():
            if key in COMPANION_TEXT_FIELDS:
                continue
            if spec.kind is FieldKind.AVAILABILITY:
                self._values[key] = {}
            else:
                self._values[key] = _DEFAULTS[spec.kind]
        # Record keys the questionnaire does not own (id, owner, map data...)
        self._extra: dict[str, Any] = {}
        # Raw record this store was loaded from, and the fields changed since
        self._loaded: Optional[dict[str, Any]] = None
        self._touched: set[str] = set()

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_record(cls, record: dict) -> "AnswerStore":
        """
        Pre-fill from a stored contact record.

        Keys outside the field catalogue are kept untouched, and the raw
        value of every field is remembered until a mutator changes it, so
        that the assembled record round-trips. Values that cannot be read
        (a free-text year, a null list) load as unset.
        """
        store = cls()
        store._loaded = copy.deepcopy(record)
        for key, value in record.items():
            spec = FIELDS.get(key)
            if spec is None:
                store._extra[key] = copy.deepcopy(value)
            elif key not in COMPANION_TEXT_FIELDS:
                store._values[key] = store._coerce_loaded(spec, value, record)
        return store

    @staticmethod
    def _coerce_loaded(spec: FieldSpec, value: Any, record: dict) -> Any:
        if spec.kind is FieldKind.TEXT:
            return "" if value is None else str(value)
        if spec.kind is FieldKind.NUMBER:
            return _load_number(value)
        if spec.kind is FieldKind.TRISTATE:
            try:
                return TriState.parse(value)
            except ValueError:
                return TriState.UNSET
        if spec.kind is FieldKind.FLAG:
            return bool(value)
        if spec.kind is FieldKind.MULTI_SELECT:
            companion = spec.companion
            return MultiSelect.from_list(
                value if isinstance(value, list) else [],
                other_text=record.get(companion) if companion else None,
                allow_other=companion is not None,
            )
        if isinstance(value, dict):
            return {str(k): bool(v) for k, v in value.items()}
        return {}

    # =========================================================================
    # Mutators
    # =========================================================================

    def _spec(self, key: str, *kinds: FieldKind) -> FieldSpec:
        spec = FIELDS.get(key)
        if spec is None:
            raise KeyError(f"Unknown field: {key}")
        if kinds and spec.kind not in kinds:
            raise ValueError(f"{key} is a {spec.kind.value} field")
        return spec

    def _store(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._touched.add(key)
        logger.debug("Answer set %s=%r", key, value)

    def set_text(self, key: str, value: Optional[str]) -> None:
        """Set a free-text field. Companion fields describe their Other selection."""
        if key in COMPANION_TEXT_FIELDS:
            self.set_other_text(_COMPANION_OWNERS[key], value or "")
            return
        self._spec(key, FieldKind.TEXT)
        self._store(key, "" if value is None else str(value))

    def set_number(self, key: str, value: Union[int, str, None]) -> None:
        """
        Set a numeric field.

        Raises:
            ValueError: If the value is negative or not a whole number
        """
        self._spec(key, FieldKind.NUMBER)
        self._store(key, _parse_number(key, value))

    def set_tristate(self, key: str, value: Union[TriState, bool, str, None]) -> None:
        self._spec(key, FieldKind.TRISTATE)
        self._store(key, TriState.parse(value))

    def set_flag(self, key: str, value: bool) -> None:
        self._spec(key, FieldKind.FLAG)
        self._store(key, bool(value))

    def toggle_item(self, key: str, item: str) -> None:
        """Add or remove a multi-select item; the sentinel toggles Other."""
        spec = self._spec(key, FieldKind.MULTI_SELECT)
        current: MultiSelect = self._values[key]
        if spec.companion and item == OTHER_SENTINEL:
            self._store(key, current.toggle_other())
        else:
            self._store(key, current.toggle_known(item))

    def set_other_text(self, key: str, free_text: str) -> None:
        """
        Describe the Other selection of a multi-select.

        Raises:
            ValueError: If the field has no Other choice or it is not selected
        """
        spec = self._spec(key, FieldKind.MULTI_SELECT)
        if not spec.companion:
            raise ValueError(f"{key} has no 'other' choice")
        self._store(key, self._values[key].with_other_text(free_text or ""))

    def toggle_availability(self, location: str) -> None:
        availability = dict(self._values["city_availability"])
        availability[location] = not availability.get(location, False)
        self._store("city_availability", availability)

    def set_availability(self, location: str, available: bool) -> None:
        availability = dict(self._values["city_availability"])
        availability[location] = bool(available)
        self._store("city_availability", availability)

    def set_value(self, key: str, value: Any) -> None:
        """Set any scalar field, dispatching on its kind."""
        if key in COMPANION_TEXT_FIELDS:
            self.set_text(key, value)
            return
        spec = self._spec(key)
        if spec.kind is FieldKind.TEXT:
            self.set_text(key, value)
        elif spec.kind is FieldKind.NUMBER:
            self.set_number(key, value)
        elif spec.kind is FieldKind.TRISTATE:
            self.set_tristate(key, value)
        elif spec.kind is FieldKind.FLAG:
            self.set_flag(key, value)
        else:
            raise ValueError(f"{key} is a {spec.kind.value} field; use its toggle")

    # =========================================================================
    # Accessors
    # =========================================================================

    def get(self, key: str) -> Any:
        """Current value of a field (companion fields read their Other text)."""
        if key in COMPANION_TEXT_FIELDS:
            other = self._values[_COMPANION_OWNERS[key]].other
            return other.free_text if other else ""
        self._spec(key)
        value = self._values[key]
        return dict(value) if isinstance(value, dict) else value

    def text(self, key: str) -> str:
        return self.get(key) or ""

    def number(self, key: str) -> Optional[int]:
        self._spec(key, FieldKind.NUMBER)
        return self._values[key]

    def tristate(self, key: str) -> TriState:
        self._spec(key, FieldKind.TRISTATE)
        return self._values[key]

    def selection(self, key: str) -> MultiSelect:
        self._spec(key, FieldKind.MULTI_SELECT)
        return self._values[key]

    def availability(self) -> dict[str, bool]:
        return dict(self._values["city_availability"])

    @property
    def extra(self) -> dict[str, Any]:
        """Loaded record keys the questionnaire does not own."""
        return dict(self._extra)

    @property
    def original(self) -> Optional[dict[str, Any]]:
        """Copy of the record this store was loaded from (None when created empty)."""
        return copy.deepcopy(self._loaded)

    def is_touched(self, key: str) -> bool:
        """True once a mutator has changed the field (companions follow their selection)."""
        if key in COMPANION_TEXT_FIELDS:
            key = _COMPANION_OWNERS[key]
        return key in self._touched

    def snapshot(self) -> dict[str, Any]:
        """Copy of every owned field's current typed value."""
        return {key: self.get(key) for key in self._values}

    def __repr__(self) -> str:
        return f"AnswerStore(fields={len(self._values)}, extra={sorted(self._extra)})"
