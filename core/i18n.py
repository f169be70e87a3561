"""
Translation Lookup - Labels and messages emitted by the intake engine

Only the strings the engine emits are translated here. Validation logic
never depends on the chosen language.
"""

from __future__ import annotations

import logging
from typing import Final


logger = logging.getLogger(__name__)


FALLBACK_LANGUAGE: Final[str] = "de"


CATALOGUES: Final[dict[str, dict[str, str]]] = {
    "de": {
        # Step 1 - company data
        "company_name": "Firmenname",
        "email_address": "E-Mail-Adresse",
        "company_address": "Firmenadresse",
        "website": "Website",
        "contact_person_first_name": "Ansprechpartner Vorname",
        "phone_number": "Telefonnummer",
        # Step 2 - experience
        "company_established_year": "Gründungsjahr",
        "is_last_mile_logistics.van_transport": "Logistik-Erfahrung",
        "is_last_mile_logistics.bicycle_delivery": "Bicycle Delivery Erfahrung",
        "last_mile_since_when": "Erfahrung seit Jahr",
        "amazon_work_capacity": "Amazon Arbeitskapazität",
        "works_for_quick_commerce": "Quick Commerce Arbeit",
        "works_for_gig_economy_food": "Gig Economy Food Arbeit",
        "bicycle_count": "Anzahl Fahrräder",
        "cargo_bike_count": "Anzahl Lastenfahrräder",
        "legal_form": "Rechtsform",
        "vehicle_types": "Fahrzeugtypen",
        "total_vehicle_count": "Anzahl Fahrzeuge",
        "company_owns_vehicles": "Eigene Fahrzeuge",
        "gig_economy_other": "Gig Economy Andere (Beschreibung)",
        "quick_commerce_other": "Quick Commerce Andere (Beschreibung)",
        # Step 3 - staff
        "staff_types": "Mitarbeitertypen (mindestens einer)",
        "delivery_driver_count": "Anzahl Lieferfahrer",
        "bicycle_driver_count": "Anzahl Fahrrad-Fahrer",
        # Step 4 - locations
        "city_availability.city": "Standortverfügbarkeit (mindestens eine Stadt)",
        "city_availability.zone": "Standortverfügbarkeit (mindestens eine Zone)",
        # Messages
        "last_mile_since_when.below_minimum": "{label} (darf nicht vor Gründungsjahr {minimum} liegen)",
        "email_address.invalid": "{label} (ungültiges Format)",
        "errors.missing_fields_title": "Fehlende Pflichtfelder",
        "errors.missing_fields": "Bitte füllen Sie folgende Felder aus: {fields}",
        "errors.invalid_market": "Ungültige Marktkonfiguration: {market_type}/{target_market}",
        "errors.submit_failed": "Speichern fehlgeschlagen. Bitte versuchen Sie es erneut.",
    },
    "en": {
        "company_name": "Company name",
        "email_address": "Email address",
        "company_address": "Company address",
        "website": "Website",
        "contact_person_first_name": "Contact person first name",
        "phone_number": "Phone number",
        "company_established_year": "Year founded",
        "is_last_mile_logistics.van_transport": "Logistics experience",
        "is_last_mile_logistics.bicycle_delivery": "Bicycle delivery experience",
        "last_mile_since_when": "Experience since year",
        "amazon_work_capacity": "Amazon work capacity",
        "works_for_quick_commerce": "Quick commerce work",
        "works_for_gig_economy_food": "Gig economy food work",
        "bicycle_count": "Number of bicycles",
        "cargo_bike_count": "Number of cargo bikes",
        "legal_form": "Legal status",
        "vehicle_types": "Vehicle types",
        "total_vehicle_count": "Number of vehicles",
        "company_owns_vehicles": "Company owns vehicles",
        "gig_economy_other": "Gig economy other (description)",
        "quick_commerce_other": "Quick commerce other (description)",
        "staff_types": "Staff types (at least one)",
        "delivery_driver_count": "Number of delivery drivers",
        "bicycle_driver_count": "Number of bicycle riders",
        "city_availability.city": "Location availability (at least one City)",
        "city_availability.zone": "Location availability (at least one Zone)",
        "last_mile_since_when.below_minimum": "{label} (must not be before founding year {minimum})",
        "email_address.invalid": "{label} (invalid format)",
        "errors.missing_fields_title": "Missing required fields",
        "errors.missing_fields": "Please fill in the following fields: {fields}",
        "errors.invalid_market": "Invalid market configuration: {market_type}/{target_market}",
        "errors.submit_failed": "Saving failed. Please try again.",
    },
}


class Translator:
    """
    Key-based string lookup for one language.

    Falls back to the German catalogue, then to the key itself.
    """

    def __init__(self, language: str = FALLBACK_LANGUAGE):
        self.language = language
        self._catalogue = CATALOGUES.get(language, {})
        self._fallback = CATALOGUES[FALLBACK_LANGUAGE]

    def t(self, key: str, **params: object) -> str:
        """Translate a key, formatting ``params`` into the string."""
        text = self._catalogue.get(key)
        if text is None:
            text = self._fallback.get(key)
        if text is None:
            logger.debug("Missing translation key %r for language %s", key, self.language)
            return key
        return text.format(**params) if params else text

    def has(self, key: str) -> bool:
        return key in self._catalogue or key in self._fallback

    def __repr__(self) -> str:
        return f"Translator({self.language!r})"
