"""
Shared fixtures for the intake engine tests.
"""

import pytest

from core.contacts import ContactRepository, reset_contact_repository
from core.intake import AnswerStore, TriState
from core.markets import MarketConfig, MarketConfigRegistry, MarketType, reset_market_registry


@pytest.fixture(autouse=True)
def reset_singletons():
    """Every test starts with fresh module singletons."""
    reset_market_registry()
    reset_contact_repository()
    yield
    reset_market_registry()
    reset_contact_repository()


@pytest.fixture
def registry():
    """Registry built from the bundled market content."""
    return MarketConfigRegistry.from_file()


@pytest.fixture
def berlin(registry):
    return registry.get(MarketType.BICYCLE_DELIVERY, "berlin")


@pytest.fixture
def uk_van(registry):
    return registry.get(MarketType.VAN_TRANSPORT, "uk")


@pytest.fixture
def germany_van(registry):
    return registry.get(MarketType.VAN_TRANSPORT, "germany")


@pytest.fixture
def repository():
    """In-memory contact repository."""
    return ContactRepository()


def _fill_step_1(answers: AnswerStore, config: MarketConfig) -> None:
    answers.set_text("company_name", "Muster Kurier GmbH")
    answers.set_text("email_address", "info@muster-kurier.de")
    answers.set_text("company_address", "Hauptstraße 1, 10115 Berlin")
    answers.set_text("website", "https://muster-kurier.de")
    answers.set_text("contact_person_first_name", "Anna")
    answers.set_text("phone_number", "+49 30 1234567")


def _fill_step_2(answers: AnswerStore, config: MarketConfig) -> None:
    answers.set_number("company_established_year", 2019)
    answers.set_tristate("is_last_mile_logistics", TriState.YES)
    answers.set_number("last_mile_since_when", 2020)
    answers.set_text("amazon_work_capacity", "No previous Amazon experience")
    if config.market_type is MarketType.BICYCLE_DELIVERY:
        answers.set_tristate("works_for_quick_commerce", TriState.NO)
        answers.set_tristate("works_for_gig_economy_food", TriState.NO)
        answers.set_number("bicycle_count", 12)
        answers.set_number("cargo_bike_count", 0)
    elif config.is_uk_ireland:
        answers.set_text("legal_form", "Ltd")
        answers.toggle_item("vehicle_types", config.vehicle_types[0])
        answers.set_number("total_vehicle_count", 8)
        answers.set_tristate("company_owns_vehicles", TriState.YES)
        answers.set_tristate("works_for_quick_commerce", TriState.NO)
        answers.set_tristate("works_for_gig_economy_food", TriState.NO)


def _fill_step_3(answers: AnswerStore, config: MarketConfig) -> None:
    answers.toggle_item("staff_types", config.staff_types[0])
    answers.set_number("delivery_driver_count", 10)
    if config.market_type is MarketType.BICYCLE_DELIVERY:
        answers.set_number("bicycle_driver_count", 8)


def _fill_step_4(answers: AnswerStore, config: MarketConfig) -> None:
    answers.toggle_availability(config.locations[0])


STEP_FILLERS = {
    1: _fill_step_1,
    2: _fill_step_2,
    3: _fill_step_3,
    4: _fill_step_4,
}


@pytest.fixture
def fill_step():
    """Answer every required field of a step: fill_step(answers, config, step)."""

    def fill(answers: AnswerStore, config: MarketConfig, step: int) -> AnswerStore:
        STEP_FILLERS[step](answers, config)
        return answers

    return fill


@pytest.fixture
def complete_answers(fill_step):
    """Answers satisfying all steps of a market: complete_answers(config)."""

    def build(config: MarketConfig) -> AnswerStore:
        answers = AnswerStore()
        for step in sorted(STEP_FILLERS):
            fill_step(answers, config, step)
        return answers

    return build
