"""
Field Requirement Resolver - Which fields a step requires

Requirements are an ordered table of rules. Each rule names its step, the
field, the check to apply, and a predicate over the rule context (market
type, target market, current answers). Resolving a step evaluates the table
fresh every time because requirements depend on answers that keep changing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final, Optional, Union

from core.i18n import Translator
from core.intake.answers import AnswerStore
from core.intake.schema import (
    COMPANION_FIELDS,
    FieldRequirement,
    TriState,
    ValidationKind,
)
from core.markets.registry import MarketConfigNotFoundError, get_market_registry
from core.markets.schema import MarketConfig, MarketType, language_for_market


# =============================================================================
# Rule context
# =============================================================================


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule predicate may look at."""

    step: int
    market_type: MarketType
    target_market: str
    config: MarketConfig
    answers: AnswerStore

    @property
    def is_bicycle_delivery(self) -> bool:
        return self.market_type is MarketType.BICYCLE_DELIVERY

    @property
    def is_van_transport(self) -> bool:
        return self.market_type is MarketType.VAN_TRANSPORT

    @property
    def is_uk_ireland(self) -> bool:
        return self.config.is_uk_ireland


Predicate = Callable[[RuleContext], bool]
LabelKey = Callable[[RuleContext], str]


def always(ctx: RuleContext) -> bool:
    return True


def bicycle_delivery(ctx: RuleContext) -> bool:
    return ctx.is_bicycle_delivery


def van_transport_uk_ireland(ctx: RuleContext) -> bool:
    return ctx.is_van_transport and ctx.is_uk_ireland


def has_last_mile_experience(ctx: RuleContext) -> bool:
    return ctx.answers.tristate("is_last_mile_logistics") is TriState.YES


def other_selected(select_key: str) -> Predicate:
    def predicate(ctx: RuleContext) -> bool:
        return ctx.answers.selection(select_key).has_other

    predicate.__name__ = f"other_selected_{select_key}"
    return predicate


# =============================================================================
# Rules
# =============================================================================


@dataclass(frozen=True)
class RequirementRule:
    """
    One row of the requirement table.

    label_key defaults to the field key; give a callable when the label
    varies with the context.
    """

    step: int
    field_key: str
    kind: ValidationKind
    applies: Predicate = always
    label_key: Optional[LabelKey] = None
    minimum_field: Optional[str] = None
    invalid_key: Optional[str] = None

    def build(self, ctx: RuleContext, translator: Translator) -> FieldRequirement:
        key = self.label_key(ctx) if self.label_key else self.field_key
        label = translator.t(key)
        invalid_message = None
        if self.invalid_key:
            # {minimum} is filled in by the validator
            invalid_message = translator.t(
                self.invalid_key, label=label, minimum="{minimum}"
            )
        return FieldRequirement(
            field_key=self.field_key,
            label=label,
            kind=self.kind,
            minimum_field=self.minimum_field,
            invalid_message=invalid_message,
            options=ctx.config.locations if self.kind is ValidationKind.AVAILABILITY else (),
        )


_T = ValidationKind

REQUIREMENT_RULES: Final[tuple[RequirementRule, ...]] = (
    # Step 1 - company data
    RequirementRule(1, "company_name", _T.TEXT),
    RequirementRule(1, "email_address", _T.EMAIL, invalid_key="email_address.invalid"),
    RequirementRule(1, "company_address", _T.TEXT),
    RequirementRule(1, "website", _T.TEXT),
    RequirementRule(1, "contact_person_first_name", _T.TEXT),
    RequirementRule(1, "phone_number", _T.TEXT),
    # Step 2 - experience, every market
    RequirementRule(2, "company_established_year", _T.NUMBER),
    RequirementRule(
        2, "is_last_mile_logistics", _T.TRISTATE,
        label_key=lambda ctx: f"is_last_mile_logistics.{ctx.market_type.value}",
    ),
    RequirementRule(
        2, "last_mile_since_when", _T.NUMBER,
        applies=has_last_mile_experience,
        minimum_field="company_established_year",
        invalid_key="last_mile_since_when.below_minimum",
    ),
    RequirementRule(2, "amazon_work_capacity", _T.TEXT),
    # Step 2 - bicycle delivery
    RequirementRule(2, "works_for_quick_commerce", _T.TRISTATE, applies=bicycle_delivery),
    RequirementRule(2, "works_for_gig_economy_food", _T.TRISTATE, applies=bicycle_delivery),
    RequirementRule(2, "bicycle_count", _T.NUMBER, applies=bicycle_delivery),
    RequirementRule(2, "cargo_bike_count", _T.NUMBER, applies=bicycle_delivery),
    # Step 2 - van transport in the UK and Ireland
    RequirementRule(2, "legal_form", _T.TEXT, applies=van_transport_uk_ireland),
    RequirementRule(2, "vehicle_types", _T.MULTI_SELECT, applies=van_transport_uk_ireland),
    RequirementRule(2, "total_vehicle_count", _T.NUMBER, applies=van_transport_uk_ireland),
    RequirementRule(2, "company_owns_vehicles", _T.TRISTATE, applies=van_transport_uk_ireland),
    RequirementRule(2, "works_for_quick_commerce", _T.TRISTATE, applies=van_transport_uk_ireland),
    RequirementRule(2, "works_for_gig_economy_food", _T.TRISTATE, applies=van_transport_uk_ireland),
    # Step 2 - descriptions of "other" selections
    *(
        RequirementRule(2, text_key, _T.TEXT, applies=other_selected(select_key))
        for select_key, text_key in COMPANION_FIELDS.items()
    ),
    # Step 3 - staff
    RequirementRule(3, "staff_types", _T.MULTI_SELECT),
    RequirementRule(3, "delivery_driver_count", _T.NUMBER),
    RequirementRule(3, "bicycle_driver_count", _T.NUMBER, applies=bicycle_delivery),
    # Step 4 - locations
    RequirementRule(
        4, "city_availability", _T.AVAILABILITY,
        label_key=lambda ctx: f"city_availability.{ctx.config.location_kind.value}",
    ),
)

# Re-checked on submit regardless of the step they belong to
SUBMIT_CHECK_FIELDS: Final[tuple[str, ...]] = ("company_name", "email_address")


# =============================================================================
# Resolution
# =============================================================================


def build_context(
    step: int,
    market_type: Union[MarketType, str],
    target_market: str,
    answers: AnswerStore,
    config: Optional[MarketConfig] = None,
) -> RuleContext:
    """
    Build the rule context, looking up the market configuration if needed.

    Raises:
        MarketConfigNotFoundError: If the market pair has no configuration
    """
    parsed = market_type if isinstance(market_type, MarketType) else MarketType.from_string(market_type)
    if parsed is None:
        raise MarketConfigNotFoundError(str(market_type), target_market)
    if config is None:
        config = get_market_registry().get(parsed, target_market)
    elif (config.market_type, config.target_market) != (parsed, target_market):
        raise ValueError(
            f"Config {config.market_type.value}/{config.target_market} does not match "
            f"{parsed.value}/{target_market}"
        )
    return RuleContext(
        step=step,
        market_type=parsed,
        target_market=target_market,
        config=config,
        answers=answers,
    )


def resolve(
    step: int,
    market_type: Union[MarketType, str],
    target_market: str,
    answers: AnswerStore,
    config: Optional[MarketConfig] = None,
    translator: Optional[Translator] = None,
) -> list[FieldRequirement]:
    """
    Resolve the ordered requirement list of a step.

    Pure: reads answers, never changes them. Steps outside the form yield
    an empty list.

    Raises:
        MarketConfigNotFoundError: If the market pair has no configuration
    """
    ctx = build_context(step, market_type, target_market, answers, config)
    translator = translator or Translator(language_for_market(target_market))
    return [
        rule.build(ctx, translator)
        for rule in REQUIREMENT_RULES
        if rule.step == step and rule.applies(ctx)
    ]


def resolve_submit_checks(
    market_type: Union[MarketType, str],
    target_market: str,
    answers: AnswerStore,
    config: Optional[MarketConfig] = None,
    translator: Optional[Translator] = None,
) -> list[FieldRequirement]:
    """Requirements re-checked when the summary is submitted."""
    first_step = resolve(1, market_type, target_market, answers, config, translator)
    return [req for req in first_step if req.field_key in SUBMIT_CHECK_FIELDS]
