"""
Tracking Emitter - Fire-and-forget analytics events

The intake flow reports step changes and completed registrations. Tracking
is optional: an emitter that is down or misconfigured must never block or
change navigation and validation, so callers go through emit_safely().
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Final, Optional

import requests


logger = logging.getLogger(__name__)


# =============================================================================
# Event names
# =============================================================================

STEP_VIEWED: Final[str] = "form_step_viewed"
REGISTRATION_COMPLETED: Final[str] = "registration_completed"


# =============================================================================
# Emitters
# =============================================================================


class EventEmitter:
    """Base emitter. Subclasses deliver events somewhere."""

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingEmitter(EventEmitter):
    """Writes events to the application log."""

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        logger.info("Tracking event %s: %s", event, payload)


class WebhookEmitter(EventEmitter):
    """
    POSTs events as JSON to a webhook URL.

    A single attempt per event; failures surface as requests exceptions
    to emit_safely().
    """

    def __init__(self, url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        if not url:
            raise ValueError("url is required")
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        body = {
            "event": event,
            "payload": payload,
            "sent_at": datetime.utcnow().isoformat(),
        }
        response = self._session.post(self.url, json=body, timeout=self.timeout)
        response.raise_for_status()


class RecordingEmitter(EventEmitter):
    """Keeps events in memory (for tests and local debugging)."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self.events.append((event, dict(payload)))


def emit_safely(emitter: Optional[EventEmitter], event: str, payload: dict[str, Any]) -> bool:
    """
    Emit an event, swallowing delivery errors.

    Returns:
        True if the emitter accepted the event, False otherwise
    """
    if emitter is None:
        return False
    try:
        emitter.emit(event, payload)
        return True
    except Exception as e:  # tracking must never affect the form
        logger.warning("Tracking event %s not delivered: %s", event, e)
        return False


def build_emitter(webhook_url: Optional[str], timeout: float = 5.0) -> EventEmitter:
    """Webhook emitter when a URL is configured, log emitter otherwise."""
    if webhook_url:
        return WebhookEmitter(webhook_url, timeout=timeout)
    return LoggingEmitter()
