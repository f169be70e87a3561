"""
Intake Form Routes - JSON API for the public partner intake form

The rendering layer drives a session through these endpoints: it creates a
session for a market, writes answers, and asks to move between steps.

Status codes:
- 200 for every handled action, including validation failures (the body
  carries an itemised ``errors`` list and a single ``message``)
- 404 when the market configuration or contact does not exist
- 409 when an action is not possible from the current state
- 404 for a session that was submitted, discarded or left idle too long
- 422 for values the field cannot hold
- 503 when the submitted record could not be written (retryable)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Final, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from core.contacts import ContactNotFoundError, ContactRepository
from core.i18n import Translator
from core.intake import (
    InvalidTransitionError,
    IntakeSession,
    StepResult,
    SubmitFailed,
    SubmitRejected,
    missing_fields_message,
)
from core.markets import MarketConfigNotFoundError, MarketConfigRegistry, language_for_market
from core.tracking import EventEmitter


logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/form", tags=["form"])


# =============================================================================
# Services
# =============================================================================

# Abandoned sessions are dropped after this many idle seconds
DEFAULT_IDLE_TIMEOUT: Final[float] = 2 * 60 * 60


class SessionStore:
    """
    In-memory store of open intake sessions.

    A session not touched for ``idle_timeout`` seconds is dropped on the
    next access, so abandoned forms do not pile up.
    """

    def __init__(
        self,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: dict[str, IntakeSession] = {}
        self._last_touched: dict[str, float] = {}

    def add(self, session: IntakeSession) -> None:
        self.purge_expired()
        self._sessions[session.session_id] = session
        self._last_touched[session.session_id] = self._clock()

    def get(self, session_id: str) -> Optional[IntakeSession]:
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_touched[session_id] = self._clock()
        return session

    def remove(self, session_id: str) -> bool:
        self._last_touched.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        """Drop idle sessions; returns how many were dropped."""
        cutoff = self._clock() - self.idle_timeout
        expired = [sid for sid, seen in self._last_touched.items() if seen < cutoff]
        for session_id in expired:
            self.remove(session_id)
        if expired:
            logger.info("Expired %d idle intake session(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


@dataclass
class FormServices:
    """Collaborators the form routes need, attached to ``app.state``."""

    registry: MarketConfigRegistry
    repository: ContactRepository
    emitter: Optional[EventEmitter] = None
    sessions: SessionStore = field(default_factory=SessionStore)


def _services(request: Request) -> FormServices:
    return request.app.state.form_services


def _session_or_404(request: Request, session_id: str) -> IntakeSession:
    session = _services(request).sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# =============================================================================
# Request Models
# =============================================================================


class StartSessionRequest(BaseModel):
    """Request body for opening a session."""
    market_type: str
    target_market: str
    contact_id: Optional[str] = None
    lang: Optional[str] = None


class AnswerRequest(BaseModel):
    """Request body for setting a scalar answer."""
    value: Any = None


class ToggleRequest(BaseModel):
    """Request body for toggling a multi-select item or a location."""
    item: str


# =============================================================================
# Markets
# =============================================================================


@router.get("/markets")
async def list_markets(request: Request):
    """Configured target markets per market type."""
    return {"markets": _services(request).registry.available_markets()}


@router.get("/markets/{market_type}/{target_market}")
async def market_detail(request: Request, market_type: str, target_market: str):
    """Option lists of one market."""
    config = _services(request).registry.find(market_type, target_market)
    if config is None:
        translator = Translator(language_for_market(target_market))
        raise HTTPException(
            status_code=404,
            detail=translator.t(
                "errors.invalid_market",
                market_type=market_type,
                target_market=target_market,
            ),
        )
    return config.to_dict()


# =============================================================================
# Sessions
# =============================================================================


@router.post("/sessions", status_code=201)
async def start_session(request: Request, body: StartSessionRequest):
    """
    Open an intake session.

    With ``contact_id`` the stored contact is pre-filled; ``"demo"`` opens a
    preview that never writes.
    """
    services = _services(request)
    try:
        session = IntakeSession.start(
            body.market_type,
            body.target_market,
            services.repository,
            contact_id=body.contact_id,
            registry=services.registry,
            lang=body.lang,
            emitter=services.emitter,
        )
    except MarketConfigNotFoundError:
        translator = Translator(language_for_market(body.target_market, body.lang))
        raise HTTPException(
            status_code=404,
            detail=translator.t(
                "errors.invalid_market",
                market_type=body.market_type,
                target_market=body.target_market,
            ),
        )
    except ContactNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    services.sessions.add(session)
    return session.to_dict()


@router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str):
    """Current state of a session."""
    session = _session_or_404(request, session_id)
    return {
        **session.to_dict(),
        "can_proceed": session.machine.can_proceed,
    }


@router.delete("/sessions/{session_id}")
async def discard_session(request: Request, session_id: str):
    """Abandon a session; nothing is written."""
    if not _services(request).sessions.remove(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"discarded": True}


# =============================================================================
# Answers
# =============================================================================


@router.put("/sessions/{session_id}/answers/{field_key}")
async def set_answer(request: Request, session_id: str, field_key: str, body: AnswerRequest):
    """Set a text, number, tri-state or flag answer."""
    session = _session_or_404(request, session_id)
    try:
        session.answers.set_value(field_key, body.value)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown field: {field_key}")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.to_dict()


@router.post("/sessions/{session_id}/answers/{field_key}/toggle")
async def toggle_answer(request: Request, session_id: str, field_key: str, body: ToggleRequest):
    """Toggle a multi-select item (``"other"`` toggles Other) or a location."""
    session = _session_or_404(request, session_id)
    try:
        if field_key == "city_availability":
            if body.item not in session.config.locations:
                raise ValueError(f"Unknown location for this market: {body.item}")
            session.answers.toggle_availability(body.item)
        else:
            session.answers.toggle_item(field_key, body.item)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown field: {field_key}")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.to_dict()


# =============================================================================
# Navigation
# =============================================================================


def _step_response(session: IntakeSession, result: StepResult) -> dict:
    errors = list(result.errors)
    return {
        **session.to_dict(),
        "advanced": result.advanced,
        "errors": errors,
        "message": missing_fields_message(errors, session.translator) if errors else None,
    }


@router.post("/sessions/{session_id}/next")
async def next_step(request: Request, session_id: str):
    """Validate the current step and move forward if it passes."""
    session = _session_or_404(request, session_id)
    try:
        result = session.machine.next()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(session, result)


@router.post("/sessions/{session_id}/previous")
async def previous_step(request: Request, session_id: str):
    """Move back one step without validating."""
    session = _session_or_404(request, session_id)
    try:
        result = session.machine.previous()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(session, result)


@router.post("/sessions/{session_id}/submit")
async def submit_form(request: Request, session_id: str):
    """
    Submit the form from the summary.

    Returns the validation errors when the safety check fails, or 503 when
    the record could not be written (the session stays on the summary).
    """
    session = _session_or_404(request, session_id)
    try:
        outcome = session.submit()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if isinstance(outcome, SubmitRejected):
        errors = list(outcome.errors)
        return {
            **session.to_dict(),
            "submitted": False,
            "errors": errors,
            "message": missing_fields_message(errors, session.translator),
        }
    if isinstance(outcome, SubmitFailed):
        logger.warning("Session %s submit failed: %s", session_id, outcome.reason)
        if not outcome.retryable:
            raise HTTPException(status_code=404, detail=outcome.reason)
        raise HTTPException(
            status_code=503,
            detail=session.translator.t("errors.submit_failed"),
        )
    # The form is finished; the session is closed
    _services(request).sessions.remove(session_id)
    return {
        **session.to_dict(),
        "submitted": True,
        "contact_id": outcome.contact_id,
        "errors": [],
    }
