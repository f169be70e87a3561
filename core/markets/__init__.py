"""
Market Configuration Lookup

Option lists (cities or zones, vehicle types, staff types, platforms) per
business line and target region.
"""

from core.markets.schema import (
    MarketType,
    LocationKind,
    MarketConfig,
    UK_IRELAND_MARKETS,
    SUPPORTED_LANGUAGES,
    language_for_market,
)
from core.markets.registry import (
    MarketConfigRegistry,
    MarketConfigNotFoundError,
    get_market_registry,
    reset_market_registry,
    get_market_config,
)

__all__ = [
    # Schema
    "MarketType",
    "LocationKind",
    "MarketConfig",
    "UK_IRELAND_MARKETS",
    "SUPPORTED_LANGUAGES",
    "language_for_market",
    # Registry
    "MarketConfigRegistry",
    "MarketConfigNotFoundError",
    "get_market_registry",
    "reset_market_registry",
    "get_market_config",
]
