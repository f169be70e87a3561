"""
Tests for the Answer Store

Tests cover:
- Defaults of a fresh answer record
- Typed mutators and their rejections
- Multi-select selections and the "other" choice
- Pre-filling from a stored contact record
"""

import pytest

from core.intake import (
    AnswerStore,
    Known,
    MultiSelect,
    Other,
    TriState,
)


# =============================================================================
# Defaults
# =============================================================================


class TestDefaults:

    def test_fresh_record(self):
        answers = AnswerStore()
        assert answers.text("company_name") == ""
        assert answers.number("bicycle_count") is None
        assert answers.tristate("works_for_quick_commerce") is TriState.UNSET
        assert answers.get("operates_multiple_countries") is False
        assert answers.selection("staff_types") == MultiSelect()
        assert answers.availability() == {}
        assert answers.extra == {}

    def test_companion_text_reads_empty(self):
        assert AnswerStore().get("gig_economy_other") == ""


# =============================================================================
# Mutators
# =============================================================================


class TestScalarMutators:

    def test_set_text(self):
        answers = AnswerStore()
        answers.set_text("company_name", "Muster GmbH")
        assert answers.text("company_name") == "Muster GmbH"

    def test_unknown_field(self):
        with pytest.raises(KeyError):
            AnswerStore().set_text("favourite_colour", "blue")

    def test_wrong_kind(self):
        with pytest.raises(ValueError):
            AnswerStore().set_text("bicycle_count", "12")

    @pytest.mark.parametrize("raw,expected", [
        (12, 12),
        ("12", 12),
        (" 7 ", 7),
        (0, 0),
        ("0", 0),
        (3.0, 3),
        ("", None),
        (None, None),
    ])
    def test_set_number_parses(self, raw, expected):
        answers = AnswerStore()
        answers.set_number("bicycle_count", raw)
        assert answers.number("bicycle_count") == expected

    @pytest.mark.parametrize("raw", [-1, "-5", "twelve", 2.5, True])
    def test_set_number_rejects(self, raw):
        with pytest.raises(ValueError):
            AnswerStore().set_number("bicycle_count", raw)

    @pytest.mark.parametrize("raw,expected", [
        (True, TriState.YES),
        (False, TriState.NO),
        (None, TriState.UNSET),
        ("yes", TriState.YES),
        ("NO", TriState.NO),
        (TriState.UNSET, TriState.UNSET),
    ])
    def test_set_tristate(self, raw, expected):
        answers = AnswerStore()
        answers.set_tristate("company_owns_vehicles", raw)
        assert answers.tristate("company_owns_vehicles") is expected

    def test_set_tristate_rejects_nonsense(self):
        with pytest.raises(ValueError):
            AnswerStore().set_tristate("company_owns_vehicles", "maybe")

    def test_set_value_dispatches(self):
        answers = AnswerStore()
        answers.set_value("company_name", "Muster GmbH")
        answers.set_value("bicycle_count", "4")
        answers.set_value("works_for_quick_commerce", True)
        answers.set_value("uses_cargo_bikes", True)
        assert answers.text("company_name") == "Muster GmbH"
        assert answers.number("bicycle_count") == 4
        assert answers.tristate("works_for_quick_commerce") is TriState.YES
        assert answers.get("uses_cargo_bikes") is True

    def test_set_value_refuses_multi_select(self):
        with pytest.raises(ValueError):
            AnswerStore().set_value("staff_types", ["Vollzeit"])


class TestSelections:

    def test_toggle_adds_and_removes(self):
        answers = AnswerStore()
        answers.toggle_item("staff_types", "Vollzeit")
        answers.toggle_item("staff_types", "Teilzeit")
        assert answers.selection("staff_types").to_list() == ["Vollzeit", "Teilzeit"]

        answers.toggle_item("staff_types", "Vollzeit")
        assert answers.selection("staff_types").to_list() == ["Teilzeit"]

    def test_sentinel_toggles_other(self):
        answers = AnswerStore()
        answers.toggle_item("gig_economy_companies", "other")
        selection = answers.selection("gig_economy_companies")
        assert selection.has_other
        assert selection.other == Other("")

    def test_sentinel_is_plain_value_without_companion(self):
        answers = AnswerStore()
        answers.toggle_item("vehicle_types", "other")
        selection = answers.selection("vehicle_types")
        assert not selection.has_other
        assert Known("other") in selection.items

    def test_describe_other(self):
        answers = AnswerStore()
        answers.toggle_item("quick_commerce_companies", "other")
        answers.set_other_text("quick_commerce_companies", "Flink")
        assert answers.get("quick_commerce_other") == "Flink"

    def test_describe_requires_other_selected(self):
        answers = AnswerStore()
        with pytest.raises(ValueError):
            answers.set_other_text("quick_commerce_companies", "Flink")
        with pytest.raises(ValueError):
            answers.set_text("quick_commerce_other", "Flink")

    def test_describe_requires_companion(self):
        with pytest.raises(ValueError):
            AnswerStore().set_other_text("staff_types", "Interns")

    def test_deselecting_other_drops_description(self):
        answers = AnswerStore()
        answers.toggle_item("quick_commerce_companies", "other")
        answers.set_other_text("quick_commerce_companies", "Flink")
        answers.toggle_item("quick_commerce_companies", "other")
        assert answers.get("quick_commerce_other") == ""

    def test_multi_select_equality_ignores_order(self):
        first = MultiSelect((Known("a"), Known("b"), Other("x")))
        second = MultiSelect((Other("x"), Known("b"), Known("a")))
        assert first == second
        assert hash(first) == hash(second)

    def test_from_list_drops_duplicates(self):
        selection = MultiSelect.from_list(["a", "a", "other", "other"], "x", allow_other=True)
        assert selection.to_list() == ["a", "other"]
        assert selection.other == Other("x")


class TestAvailability:

    def test_toggle_availability(self):
        answers = AnswerStore()
        answers.toggle_availability("Mitte")
        assert answers.availability() == {"Mitte": True}
        answers.toggle_availability("Mitte")
        assert answers.availability() == {"Mitte": False}

    def test_availability_is_a_copy(self):
        answers = AnswerStore()
        answers.set_availability("Pankow", True)
        answers.availability()["Pankow"] = False
        assert answers.availability() == {"Pankow": True}


# =============================================================================
# Loading
# =============================================================================


class TestFromRecord:

    @pytest.fixture
    def record(self):
        return {
            "id": "c-1",
            "user_id": "u-9",
            "company_name": "Muster GmbH",
            "company_established_year": 2015,
            "last_mile_since_when": "2017",
            "is_last_mile_logistics": True,
            "works_for_quick_commerce": None,
            "company_owns_vehicles": False,
            "quick_commerce_companies": ["Getir", "other"],
            "quick_commerce_other": "Flink",
            "gig_economy_companies": ["Deliveroo"],
            "gig_economy_other": "",
            "city_availability": {"London": True, "Leeds": False},
            "operates_multiple_cities": True,
        }

    def test_typed_values(self, record):
        answers = AnswerStore.from_record(record)
        assert answers.text("company_name") == "Muster GmbH"
        assert answers.number("last_mile_since_when") == 2017
        assert answers.tristate("is_last_mile_logistics") is TriState.YES
        assert answers.tristate("works_for_quick_commerce") is TriState.UNSET
        assert answers.tristate("company_owns_vehicles") is TriState.NO
        assert answers.availability() == {"London": True, "Leeds": False}
        assert answers.get("operates_multiple_cities") is True

    def test_other_loaded_with_description(self, record):
        answers = AnswerStore.from_record(record)
        selection = answers.selection("quick_commerce_companies")
        assert selection == MultiSelect((Known("Getir"), Other("Flink")))

    def test_unknown_keys_preserved(self, record):
        answers = AnswerStore.from_record(record)
        assert answers.extra["id"] == "c-1"
        assert answers.extra["user_id"] == "u-9"

    def test_orphan_description_kept_in_original(self, record):
        record["gig_economy_other"] = "left over"
        answers = AnswerStore.from_record(record)
        assert "gig_economy_other" not in answers.extra
        assert answers.original["gig_economy_other"] == "left over"
        assert answers.get("gig_economy_other") == ""

    def test_null_text_loads_empty(self):
        answers = AnswerStore.from_record({"website": None})
        assert answers.text("website") == ""

    def test_free_text_year_loads_unset(self):
        answers = AnswerStore.from_record({"last_mile_since_when": "seit 2015"})
        assert answers.number("last_mile_since_when") is None

    def test_unreadable_values_load_unset(self):
        answers = AnswerStore.from_record({
            "bicycle_count": -4,
            "works_for_quick_commerce": "maybe",
            "staff_types": None,
            "city_availability": None,
        })
        assert answers.number("bicycle_count") is None
        assert answers.tristate("works_for_quick_commerce") is TriState.UNSET
        assert answers.selection("staff_types") == MultiSelect()
        assert answers.availability() == {}

    def test_mutators_still_reject_free_text_year(self):
        answers = AnswerStore.from_record({"last_mile_since_when": "seit 2015"})
        with pytest.raises(ValueError):
            answers.set_number("last_mile_since_when", "seit 2015")


class TestTouched:

    def test_fresh_store_has_no_original(self):
        answers = AnswerStore()
        assert answers.original is None
        assert not answers.is_touched("company_name")

    def test_mutation_marks_field(self):
        answers = AnswerStore.from_record({"company_name": "Muster GmbH"})
        answers.set_text("website", "https://muster.de")
        assert answers.is_touched("website")
        assert not answers.is_touched("company_name")

    def test_companion_follows_its_selection(self):
        answers = AnswerStore.from_record({"gig_economy_companies": ["other"], "gig_economy_other": "Bolt"})
        assert not answers.is_touched("gig_economy_other")
        answers.set_text("gig_economy_other", "Bolt Food")
        assert answers.is_touched("gig_economy_other")
        assert answers.is_touched("gig_economy_companies")

    def test_original_is_a_copy(self):
        record = {"staff_types": ["Vollzeit"]}
        answers = AnswerStore.from_record(record)
        record["staff_types"].append("Teilzeit")
        answers.original["staff_types"].append("Minijob")
        assert answers.original == {"staff_types": ["Vollzeit"]}
