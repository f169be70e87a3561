"""
Contact Repository - Storage for partner contact records

Provides storage and retrieval for contact records.
This is an in-memory implementation with optional JSON file persistence;
production should swap in a database-backed repository with the same
get / create / update surface.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ContactRepositoryError(Exception):
    """Raised when the repository cannot read or write a record."""


class ContactNotFoundError(LookupError):
    """Raised when a contact id does not exist."""

    def __init__(self, contact_id: str):
        self.contact_id = contact_id
        super().__init__(f"Contact {contact_id} not found")


# =============================================================================
# Repository
# =============================================================================


class ContactRepository:
    """
    Repository for storing and retrieving contact records.

    Records are plain dicts keyed by contact id. Callers always receive
    copies, so a returned record can be changed without touching storage.
    """

    def __init__(self, persist_path: Optional[str] = None):
        """
        Initialise repository.

        Args:
            persist_path: Optional path to persist data to JSON file
        """
        self._contacts: dict[str, dict[str, Any]] = {}
        self._persist_path = Path(persist_path) if persist_path else None

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self) -> None:
        """Persist data to file."""
        if not self._persist_path:
            return

        data = {
            "contacts": self._contacts,
            "saved_at": datetime.utcnow().isoformat(),
        }

        try:
            self._persist_path.parent.mkdir(parents=True, exist_ok=True)
            self._persist_path.write_text(json.dumps(data, indent=2, ensure_ascii=False))
        except (OSError, TypeError, ValueError) as e:
            raise ContactRepositoryError(f"Could not save contacts: {e}") from e

    def _load_from_file(self) -> None:
        """Load data from file."""
        try:
            data = json.loads(self._persist_path.read_text())
            self._contacts = dict(data.get("contacts", {}))
        except (json.JSONDecodeError, OSError, AttributeError) as e:
            # Start fresh rather than refusing to boot
            logger.warning("Could not load contact data from %s: %s", self._persist_path, e)

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def get(self, contact_id: str) -> Optional[dict[str, Any]]:
        """
        Get a contact record by id.

        Returns:
            Copy of the record if found, None otherwise
        """
        record = self._contacts.get(contact_id)
        return copy.deepcopy(record) if record is not None else None

    def create(self, record: dict[str, Any]) -> str:
        """
        Store a new contact record.

        Returns:
            The new contact id

        Raises:
            ContactRepositoryError: If the record cannot be persisted
        """
        contact_id = str(uuid.uuid4())
        stored = copy.deepcopy(record)
        stored["id"] = contact_id
        self._contacts[contact_id] = stored
        try:
            self._save_to_file()
        except ContactRepositoryError:
            del self._contacts[contact_id]
            raise
        logger.info("Created contact %s", contact_id)
        return contact_id

    def update(self, contact_id: str, record: dict[str, Any]) -> None:
        """
        Replace the fields of an existing contact.

        Raises:
            ContactNotFoundError: If the contact does not exist
            ContactRepositoryError: If the record cannot be persisted
        """
        previous = self._contacts.get(contact_id)
        if previous is None:
            raise ContactNotFoundError(contact_id)

        updated = {**previous, **copy.deepcopy(record), "id": contact_id}
        self._contacts[contact_id] = updated
        try:
            self._save_to_file()
        except ContactRepositoryError:
            self._contacts[contact_id] = previous
            raise
        logger.info("Updated contact %s", contact_id)

    def delete(self, contact_id: str) -> bool:
        """
        Delete a contact record.

        Returns:
            True if deleted, False if not found
        """
        if contact_id in self._contacts:
            del self._contacts[contact_id]
            self._save_to_file()
            return True
        return False

    # =========================================================================
    # Query Operations
    # =========================================================================

    def list_all(self) -> list[dict[str, Any]]:
        """Get all contact records."""
        return [copy.deepcopy(r) for r in self._contacts.values()]

    def count(self) -> int:
        """Get total number of contacts."""
        return len(self._contacts)

    def count_completed(self) -> int:
        """Get number of contacts that completed the intake form."""
        return sum(1 for r in self._contacts.values() if r.get("form_completed"))


# =============================================================================
# Singleton Instance
# =============================================================================

_repository_instance: Optional[ContactRepository] = None


def get_contact_repository(persist_path: Optional[str] = None) -> ContactRepository:
    """
    Get the contact repository singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)
    """
    global _repository_instance
    if _repository_instance is None:
        _repository_instance = ContactRepository(persist_path or "data/contacts.json")
    return _repository_instance


def reset_contact_repository() -> None:
    """Drop the singleton (used by tests)."""
    global _repository_instance
    _repository_instance = None
