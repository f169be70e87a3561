"""
Partner Intake Engine - Core Business Logic

This module provides the intake pipeline of the partner-recruitment CRM:
1. Market Configuration (option lists per market type and target market)
2. Requirement Resolution (which fields a step needs, given the answers)
3. Step Validation (user-facing messages for missing or invalid fields)
4. Step Navigation (Step 1..N -> Summary -> Submitted)
5. Submission (assembled record written through the contact repository)
"""

# Market Configuration
from .markets import (
    MarketType,
    LocationKind,
    MarketConfig,
    MarketConfigRegistry,
    MarketConfigNotFoundError,
    get_market_registry,
    get_market_config,
)

# Contact Storage
from .contacts import (
    ContactRepository,
    ContactRepositoryError,
    ContactNotFoundError,
    get_contact_repository,
)

# Translations
from .i18n import Translator

# Tracking
from .tracking import (
    EventEmitter,
    LoggingEmitter,
    WebhookEmitter,
    build_emitter,
)

# Partner Intake
from .intake import (
    TriState,
    MultiSelect,
    FieldRequirement,
    AnswerStore,
    resolve,
    validate,
    assemble,
    FlowState,
    InvalidTransitionError,
    StepStateMachine,
    SubmitSuccess,
    SubmitRejected,
    SubmitFailed,
    IntakeSession,
)

__all__ = [
    # Market Configuration
    "MarketType",
    "LocationKind",
    "MarketConfig",
    "MarketConfigRegistry",
    "MarketConfigNotFoundError",
    "get_market_registry",
    "get_market_config",
    # Contact Storage
    "ContactRepository",
    "ContactRepositoryError",
    "ContactNotFoundError",
    "get_contact_repository",
    # Translations
    "Translator",
    # Tracking
    "EventEmitter",
    "LoggingEmitter",
    "WebhookEmitter",
    "build_emitter",
    # Partner Intake
    "TriState",
    "MultiSelect",
    "FieldRequirement",
    "AnswerStore",
    "resolve",
    "validate",
    "assemble",
    "FlowState",
    "InvalidTransitionError",
    "StepStateMachine",
    "SubmitSuccess",
    "SubmitRejected",
    "SubmitFailed",
    "IntakeSession",
]
