"""
Intake Session - One partner filling in the public intake form

Ties a market configuration, the answer record and the step state machine
together, and owns the two repository calls of a session: the read on
start and the write on submit.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Final, Optional, Union

from core.contacts.repository import ContactNotFoundError, ContactRepository
from core.i18n import Translator
from core.intake.answers import AnswerStore
from core.intake.flow import StepStateMachine, SubmitResult
from core.intake.submission import serialize_answers
from core.markets.registry import MarketConfigRegistry, get_market_registry
from core.markets.schema import MarketConfig, MarketType, language_for_market
from core.tracking import EventEmitter


logger = logging.getLogger(__name__)


# Contact id that opens a pre-filled preview which never writes
DEMO_CONTACT_ID: Final[str] = "demo"


def demo_record(config: MarketConfig) -> dict[str, Any]:
    """
    Deterministic preview answers for a market.

    Every required field of every step is answered, so a preview can be
    clicked through to the summary.
    """
    bicycle = config.market_type is MarketType.BICYCLE_DELIVERY
    uk_ireland = config.is_uk_ireland
    return {
        "id": DEMO_CONTACT_ID,
        "company_name": "Demo Logistics GmbH",
        "company_address": "Musterstraße 123, 12345 Berlin",
        "legal_form": "GmbH",
        "website": "https://demo-logistics.com",
        "contact_person_first_name": "Max",
        "contact_person_last_name": "Mustermann",
        "contact_person_position": "Geschäftsführer",
        "phone_number": "+49 30 12345678",
        "email_address": "max@demo-logistics.com",
        "market_type": config.market_type.value,
        "target_market": config.target_market,
        "is_last_mile_logistics": True,
        "last_mile_since_when": "2020",
        "company_established_year": 2019,
        "operating_cities": list(config.locations),
        "city_availability": {config.locations[0]: True},
        "food_delivery_services": bicycle,
        "food_delivery_platforms": ["Deliveroo", "UberEats"] if bicycle else [],
        "staff_types": list(config.staff_types[:2]),
        "vehicle_types": list(config.vehicle_types[:2]),
        "full_time_drivers": 15,
        "transporter_count": 10,
        "amazon_experience": not bicycle,
        "amazon_work_capacity": (
            "No previous Amazon experience" if bicycle
            else "Worked as delivery partner from 2018-2020"
        ),
        "works_for_quick_commerce": bicycle,
        "works_for_gig_economy_food": bicycle,
        "company_owns_vehicles": True,
        "uses_cargo_bikes": bicycle,
        "employee_type": "both",
        "employment_status": "both" if uk_ireland else "",
        "bicycle_count": 25 if bicycle else None,
        "cargo_bike_count": 8 if bicycle else None,
        "delivery_driver_count": 20 if bicycle else 12,
        "bicycle_driver_count": 15 if bicycle else None,
        "total_vehicle_count": 33 if bicycle else 10,
        "operates_multiple_countries": False,
        "operates_multiple_cities": True,
        "quick_commerce_companies": ["Getir", "Gorillas"] if uk_ireland else [],
        "gig_economy_companies": ["Deliveroo", "Uber Eats"] if uk_ireland else [],
        "additional_comments": "Demo-Daten für Vorschau-Zwecke",
    }


class IntakeSession:
    """
    A single pass through the intake form.

    Usage:
        session = IntakeSession.start("bicycle_delivery", "berlin", repository)
        session.answers.set_text("company_name", "Muster GmbH")
        result = session.machine.next()
        ...
        outcome = session.submit()
    """

    def __init__(
        self,
        config: MarketConfig,
        answers: AnswerStore,
        repository: Optional[ContactRepository],
        contact_id: Optional[str] = None,
        translator: Optional[Translator] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self.session_id = str(uuid.uuid4())
        self.config = config
        self.answers = answers
        self.repository = repository
        self.contact_id = contact_id
        self.translator = translator or Translator(config.language)
        self.machine = StepStateMachine(
            config,
            answers,
            translator=self.translator,
            emitter=emitter,
            is_update=contact_id is not None and not self.is_demo,
        )

    @classmethod
    def start(
        cls,
        market_type: Union[MarketType, str],
        target_market: str,
        repository: Optional[ContactRepository],
        contact_id: Optional[str] = None,
        registry: Optional[MarketConfigRegistry] = None,
        lang: Optional[str] = None,
        emitter: Optional[EventEmitter] = None,
    ) -> "IntakeSession":
        """
        Open a session for a market, optionally resuming a stored contact.

        Args:
            market_type: Market type of the form
            target_market: Target market of the form
            repository: Contact storage (unused in demo mode)
            contact_id: Contact to pre-fill from, or DEMO_CONTACT_ID
            registry: Market configurations (defaults to the bundled ones)
            lang: Language override
            emitter: Tracking emitter

        Raises:
            MarketConfigNotFoundError: If the market pair is not configured
            ContactNotFoundError: If contact_id does not exist
        """
        if registry is None:
            registry = get_market_registry()
        config = registry.get(market_type, target_market)
        translator = Translator(language_for_market(config.target_market, lang))

        if contact_id == DEMO_CONTACT_ID:
            answers = AnswerStore.from_record(demo_record(config))
        elif contact_id is not None:
            if repository is None:
                raise ValueError("A repository is required to resume a contact")
            record = repository.get(contact_id)
            if record is None:
                raise ContactNotFoundError(contact_id)
            answers = AnswerStore.from_record(record)
        else:
            answers = AnswerStore()

        session = cls(
            config,
            answers,
            repository,
            contact_id=contact_id,
            translator=translator,
            emitter=emitter,
        )
        logger.info(
            "Intake session %s started for %s/%s (contact=%s, lang=%s)",
            session.session_id,
            config.market_type.value,
            config.target_market,
            contact_id,
            translator.language,
        )
        return session

    @property
    def is_demo(self) -> bool:
        return self.contact_id == DEMO_CONTACT_ID

    def _write(self, record: dict[str, Any]) -> Optional[str]:
        if self.is_demo:
            logger.info("Demo session %s submitted; nothing written", self.session_id)
            return DEMO_CONTACT_ID
        if self.repository is None:
            raise ValueError("Session has no contact repository")
        if self.contact_id is not None:
            self.repository.update(self.contact_id, record)
            return self.contact_id
        self.contact_id = self.repository.create(record)
        return self.contact_id

    def submit(self, completed_at: Optional[datetime] = None) -> SubmitResult:
        """Submit through the state machine, writing to the repository."""
        return self.machine.submit(self._write, completed_at=completed_at)

    def to_dict(self) -> dict[str, Any]:
        """Session view for API responses."""
        return {
            "session_id": self.session_id,
            "contact_id": self.contact_id,
            "demo": self.is_demo,
            "language": self.translator.language,
            "market": self.config.to_dict(),
            **self.machine.to_dict(),
            "requirements": [r.to_dict() for r in self.machine.current_requirements()],
            "answers": serialize_answers(self.answers),
        }
