"""
Market Configuration Schema

A market configuration describes the option lists a partner sees for one
business line (market type) in one region (target market). The content is
owned outside the engine; the engine only reads the shape defined here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional


# =============================================================================
# Enums
# =============================================================================


class MarketType(Enum):
    """Business line a partner is recruited for."""

    VAN_TRANSPORT = "van_transport"
    BICYCLE_DELIVERY = "bicycle_delivery"

    @classmethod
    def from_string(cls, value: str) -> Optional["MarketType"]:
        """Parse a market type, returning None for unknown values."""
        normalised = (value or "").lower().strip().replace("-", "_")
        for market_type in cls:
            if market_type.value == normalised:
                return market_type
        return None


class LocationKind(Enum):
    """Presentation of the selectable location list."""

    CITY = "city"
    ZONE = "zone"


# =============================================================================
# Constants
# =============================================================================

# Target markets whose forms are served in English with UK/Ireland fields
UK_IRELAND_MARKETS: Final[frozenset[str]] = frozenset({"uk", "ireland"})

SUPPORTED_LANGUAGES: Final[tuple[str, ...]] = ("en", "de", "fr", "es", "it")

DEFAULT_LANGUAGE: Final[str] = "en"

MARKET_LANGUAGES: Final[dict[str, str]] = {
    "uk": "en",
    "ireland": "en",
    "paris": "fr",
    "milan": "it",
    "rome": "it",
    "barcelona": "es",
    "madrid": "es",
    "berlin": "de",
    "germany": "de",
}


def language_for_market(target_market: str, override: Optional[str] = None) -> str:
    """
    Determine the form language for a target market.

    An explicit override wins when it names a supported language.
    """
    if override and override in SUPPORTED_LANGUAGES:
        return override
    return MARKET_LANGUAGES.get(target_market, DEFAULT_LANGUAGE)


# =============================================================================
# Market Configuration
# =============================================================================


@dataclass(frozen=True)
class MarketConfig:
    """
    Option lists for one (market type, target market) pair.

    A configuration has either cities or zones, never both.
    """

    market_type: MarketType
    target_market: str
    vehicle_types: tuple[str, ...]
    staff_types: tuple[str, ...]
    platforms: tuple[str, ...]
    cities: tuple[str, ...] = ()
    zones: tuple[str, ...] = ()
    employee_types: tuple[str, ...] = ()
    employment_statuses: tuple[str, ...] = ()
    bicycle_types: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.target_market:
            raise ValueError("target_market is required")
        if self.cities and self.zones:
            raise ValueError(
                f"Market {self.market_type.value}/{self.target_market} defines both cities and zones"
            )
        if not self.cities and not self.zones:
            raise ValueError(
                f"Market {self.market_type.value}/{self.target_market} defines no locations"
            )

    @property
    def location_kind(self) -> LocationKind:
        """Whether the location list is presented as zones or cities."""
        return LocationKind.ZONE if self.zones else LocationKind.CITY

    @property
    def locations(self) -> tuple[str, ...]:
        """Selectable locations (zones or cities)."""
        return self.zones or self.cities

    @property
    def language(self) -> str:
        """Default form language for this market."""
        return language_for_market(self.target_market)

    @property
    def is_uk_ireland(self) -> bool:
        return self.target_market in UK_IRELAND_MARKETS

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        data = {
            "market_type": self.market_type.value,
            "target_market": self.target_market,
            "location_kind": self.location_kind.value,
            "vehicle_types": list(self.vehicle_types),
            "staff_types": list(self.staff_types),
            "platforms": list(self.platforms),
            "language": self.language,
        }
        if self.zones:
            data["zones"] = list(self.zones)
        else:
            data["cities"] = list(self.cities)
        for name in ("employee_types", "employment_statuses", "bicycle_types"):
            values = getattr(self, name)
            if values:
                data[name] = list(values)
        return data

    @classmethod
    def from_dict(
        cls,
        market_type: MarketType,
        target_market: str,
        data: dict,
    ) -> "MarketConfig":
        """Create from the JSON content shape."""
        return cls(
            market_type=market_type,
            target_market=target_market,
            cities=tuple(data.get("cities") or ()),
            zones=tuple(data.get("zones") or ()),
            vehicle_types=tuple(data.get("vehicle_types") or ()),
            staff_types=tuple(data.get("staff_types") or ()),
            platforms=tuple(data.get("platforms") or ()),
            employee_types=tuple(data.get("employee_types") or ()),
            employment_statuses=tuple(data.get("employment_statuses") or ()),
            bicycle_types=tuple(data.get("bicycle_types") or ()),
        )
