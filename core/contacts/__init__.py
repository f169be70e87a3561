"""
Contact persistence boundary.

The intake engine reads a contact when a session starts and writes one when
the form is submitted; it knows nothing else about storage.
"""

from core.contacts.repository import (
    ContactRepository,
    ContactRepositoryError,
    ContactNotFoundError,
    get_contact_repository,
    reset_contact_repository,
)

__all__ = [
    "ContactRepository",
    "ContactRepositoryError",
    "ContactNotFoundError",
    "get_contact_repository",
    "reset_contact_repository",
]
