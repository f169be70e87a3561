"""
Partner Intake Schema - Answer types and the field catalogue

Defines the value types an intake answer can take, the catalogue of every
field the questionnaire knows about, and the requirement record produced by
the requirement resolver.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional, Union


# =============================================================================
# Constants
# =============================================================================

# Both market types walk through the same number of steps
TOTAL_STEPS: Final[int] = 4

# Wire form of the "other" choice inside a multi-select
OTHER_SENTINEL: Final[str] = "other"


# =============================================================================
# Enums
# =============================================================================


class TriState(Enum):
    """
    Explicit yes/no answer that may not have been given yet.

    UNSET is a valid intermediate state and is distinct from NO.
    """

    UNSET = "unset"
    YES = "yes"
    NO = "no"

    @classmethod
    def from_optional_bool(cls, value: Optional[bool]) -> "TriState":
        if value is None:
            return cls.UNSET
        return cls.YES if value else cls.NO

    def to_optional_bool(self) -> Optional[bool]:
        if self is TriState.UNSET:
            return None
        return self is TriState.YES

    @classmethod
    def parse(cls, value: Union["TriState", bool, str, None]) -> "TriState":
        """Accept a TriState, an optional bool, or 'yes' / 'no' / 'unset'."""
        if isinstance(value, TriState):
            return value
        if value is None or isinstance(value, bool):
            return cls.from_optional_bool(value)
        normalised = str(value).lower().strip()
        for state in cls:
            if state.value == normalised:
                return state
        raise ValueError(f"Invalid tri-state value: {value!r}")


class FieldKind(Enum):
    """Storage kind of an answer field."""

    TEXT = "text"
    NUMBER = "number"
    TRISTATE = "tristate"
    FLAG = "flag"  # plain boolean with a meaningful default
    MULTI_SELECT = "multi_select"
    AVAILABILITY = "availability"


class ValidationKind(Enum):
    """Check applied to a required field."""

    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    MULTI_SELECT = "multi_select"
    AVAILABILITY = "availability"
    TRISTATE = "tristate"


# =============================================================================
# Multi-select values
# =============================================================================


@dataclass(frozen=True)
class Known:
    """A selection from the offered option list."""

    value: str


@dataclass(frozen=True)
class Other:
    """The "other" choice together with its free-text description."""

    free_text: str = ""


Selection = Union[Known, Other]


@dataclass(frozen=True, eq=False)
class MultiSelect:
    """
    Set of selections.

    Keeps first-insertion order for serialisation; equality ignores order.
    Holds at most one Other.
    """

    items: tuple[Selection, ...] = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultiSelect):
            return NotImplemented
        return frozenset(self.items) == frozenset(other.items)

    def __hash__(self) -> int:
        return hash(frozenset(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def __contains__(self, value: object) -> bool:
        return value in self.values

    @property
    def values(self) -> frozenset[str]:
        """Known values plus the sentinel if Other is selected."""
        return frozenset(
            OTHER_SENTINEL if isinstance(item, Other) else item.value for item in self.items
        )

    @property
    def other(self) -> Optional[Other]:
        for item in self.items:
            if isinstance(item, Other):
                return item
        return None

    @property
    def has_other(self) -> bool:
        return self.other is not None

    def toggle_known(self, value: str) -> "MultiSelect":
        selection = Known(value)
        if selection in self.items:
            return MultiSelect(tuple(i for i in self.items if i != selection))
        return MultiSelect(self.items + (selection,))

    def toggle_other(self) -> "MultiSelect":
        if self.has_other:
            return MultiSelect(tuple(i for i in self.items if not isinstance(i, Other)))
        return MultiSelect(self.items + (Other(),))

    def with_other_text(self, free_text: str) -> "MultiSelect":
        if not self.has_other:
            raise ValueError("Cannot describe 'other' when it is not selected")
        return MultiSelect(
            tuple(Other(free_text) if isinstance(i, Other) else i for i in self.items)
        )

    def to_list(self) -> list[str]:
        return [OTHER_SENTINEL if isinstance(i, Other) else i.value for i in self.items]

    @classmethod
    def from_list(
        cls,
        values: Optional[list],
        other_text: Optional[str] = None,
        allow_other: bool = False,
    ) -> "MultiSelect":
        """
        Build from a stored list, dropping duplicates.

        With ``allow_other`` the sentinel becomes an Other carrying
        ``other_text``; otherwise it is kept as a known value.
        """
        items: list[Selection] = []
        for value in values or []:
            if allow_other and value == OTHER_SENTINEL:
                item: Selection = Other(other_text or "")
            else:
                item = Known(str(value))
            if item in items:
                continue
            if isinstance(item, Other) and any(isinstance(i, Other) for i in items):
                continue
            items.append(item)
        return cls(tuple(items))


# =============================================================================
# Field catalogue
# =============================================================================


@dataclass(frozen=True)
class FieldSpec:
    """
    One answer field.

    step is the questionnaire step that first introduces the field.
    companion names the free-text field describing an Other selection.
    stored_as_text marks numbers the contact table keeps as strings.
    """

    key: str
    kind: FieldKind
    step: int
    companion: Optional[str] = None
    stored_as_text: bool = False


def _specs(kind: FieldKind, step: int, *keys: str) -> list[FieldSpec]:
    return [FieldSpec(key, kind, step) for key in keys]


FIELDS: Final[dict[str, FieldSpec]] = {
    spec.key: spec
    for spec in [
        # Step 1 - company data
        *_specs(
            FieldKind.TEXT, 1,
            "company_name",
            "email_address",
            "company_address",
            "website",
            "contact_person_first_name",
            "contact_person_last_name",
            "contact_person_position",
            "phone_number",
        ),
        # Step 2 - experience and fleet
        *_specs(
            FieldKind.TEXT, 2,
            "legal_form",
            "amazon_work_capacity",
            "employee_type",
            "employment_status",
            "gig_economy_other",
            "quick_commerce_other",
        ),
        *_specs(
            FieldKind.NUMBER, 2,
            "company_established_year",
            "bicycle_count",
            "cargo_bike_count",
            "total_vehicle_count",
            "transporter_count",
        ),
        FieldSpec("last_mile_since_when", FieldKind.NUMBER, 2, stored_as_text=True),
        *_specs(
            FieldKind.TRISTATE, 2,
            "is_last_mile_logistics",
            "works_for_quick_commerce",
            "works_for_gig_economy_food",
            "company_owns_vehicles",
        ),
        *_specs(
            FieldKind.FLAG, 2,
            "food_delivery_services",
            "amazon_experience",
            "uses_cargo_bikes",
            "operates_multiple_countries",
            "operates_multiple_cities",
        ),
        *_specs(FieldKind.MULTI_SELECT, 2, "vehicle_types", "food_delivery_platforms"),
        FieldSpec("gig_economy_companies", FieldKind.MULTI_SELECT, 2, companion="gig_economy_other"),
        FieldSpec("quick_commerce_companies", FieldKind.MULTI_SELECT, 2, companion="quick_commerce_other"),
        # Step 3 - staff
        *_specs(FieldKind.NUMBER, 3, "full_time_drivers", "delivery_driver_count", "bicycle_driver_count"),
        FieldSpec("staff_types", FieldKind.MULTI_SELECT, 3),
        # Step 4 - locations
        FieldSpec("operating_cities", FieldKind.MULTI_SELECT, 4),
        FieldSpec("city_availability", FieldKind.AVAILABILITY, 4),
        FieldSpec("additional_comments", FieldKind.TEXT, 4),
    ]
}

# Multi-select field -> free-text field describing its Other selection
COMPANION_FIELDS: Final[dict[str, str]] = {
    spec.key: spec.companion for spec in FIELDS.values() if spec.companion
}

# Companion text fields are owned by their multi-select
COMPANION_TEXT_FIELDS: Final[frozenset[str]] = frozenset(COMPANION_FIELDS.values())

# Booleans with a meaningful default: never required to be answered
DEFAULT_VALUED_FLAGS: Final[frozenset[str]] = frozenset(
    key for key, spec in FIELDS.items() if spec.kind is FieldKind.FLAG
)

# Session context written into every record
CONTEXT_FIELDS: Final[tuple[str, ...]] = ("market_type", "target_market")


def fields_of_kind(kind: FieldKind) -> list[str]:
    return [key for key, spec in FIELDS.items() if spec.kind is kind]


# =============================================================================
# Requirements
# =============================================================================


@dataclass(frozen=True)
class FieldRequirement:
    """
    One field the current step requires.

    minimum_field names another answer the value must not be below.
    options limits an availability check to the locations it lists.
    invalid_message is reported when a value is present but invalid; it
    may carry a ``{minimum}`` placeholder.
    """

    field_key: str
    label: str
    kind: ValidationKind
    minimum_field: Optional[str] = None
    invalid_message: Optional[str] = None
    options: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "field_key": self.field_key,
            "label": self.label,
            "kind": self.kind.value,
            "minimum_field": self.minimum_field,
        }
