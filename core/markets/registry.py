"""
Market Configuration Registry - Lookup of (market type, target market) pairs

Loads market configurations from a JSON document and answers lookups.
A missing configuration is an infrastructure failure: the form cannot be
rendered at all, which is different from a user not having answered yet.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Final, Optional, Union

from core.markets.schema import MarketConfig, MarketType


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_CONFIG_PATH: Final[Path] = Path(__file__).parent / "data" / "market_configs.json"


# =============================================================================
# Exceptions
# =============================================================================


class MarketConfigNotFoundError(LookupError):
    """Raised when no configuration exists for a market type / target market."""

    def __init__(self, market_type: str, target_market: str):
        self.market_type = market_type
        self.target_market = target_market
        super().__init__(f"Invalid market configuration: {market_type}/{target_market}")


# =============================================================================
# Registry
# =============================================================================


class MarketConfigRegistry:
    """
    Read-only registry of market configurations.

    Usage:
        registry = MarketConfigRegistry.from_file()
        config = registry.get("bicycle_delivery", "berlin")
    """

    def __init__(self, configs: Optional[list[MarketConfig]] = None):
        self._configs: dict[tuple[MarketType, str], MarketConfig] = {}
        for config in configs or []:
            self.register(config)

    def register(self, config: MarketConfig) -> None:
        """
        Register a configuration.

        Raises:
            ValueError: If the pair is already registered
        """
        key = (config.market_type, config.target_market)
        if key in self._configs:
            raise ValueError(
                f"Market already registered: {config.market_type.value}/{config.target_market}"
            )
        self._configs[key] = config

    def find(
        self,
        market_type: Union[MarketType, str],
        target_market: str,
    ) -> Optional[MarketConfig]:
        """Get a configuration, or None if the pair is unknown."""
        if isinstance(market_type, str):
            parsed = MarketType.from_string(market_type)
            if parsed is None:
                return None
            market_type = parsed
        return self._configs.get((market_type, target_market))

    def get(
        self,
        market_type: Union[MarketType, str],
        target_market: str,
    ) -> MarketConfig:
        """
        Get a configuration.

        Raises:
            MarketConfigNotFoundError: If the pair is unknown
        """
        config = self.find(market_type, target_market)
        if config is None:
            raw_type = market_type.value if isinstance(market_type, MarketType) else market_type
            logger.warning("Market configuration not found: %s/%s", raw_type, target_market)
            raise MarketConfigNotFoundError(raw_type, target_market)
        return config

    def available_markets(self) -> dict[str, list[str]]:
        """Target markets per market type, in registration order."""
        result: dict[str, list[str]] = {mt.value: [] for mt in MarketType}
        for market_type, target_market in self._configs:
            result[market_type.value].append(target_market)
        return result

    def __len__(self) -> int:
        return len(self._configs)

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_dict(cls, data: dict) -> "MarketConfigRegistry":
        """
        Build a registry from the JSON content shape:
        ``{market_type: {target_market: {...option lists...}}}``.

        Raises:
            ValueError: On unknown market types or malformed entries
        """
        registry = cls()
        for raw_type, markets in data.items():
            market_type = MarketType.from_string(raw_type)
            if market_type is None:
                raise ValueError(f"Unknown market type in configuration: {raw_type}")
            for target_market, content in markets.items():
                registry.register(MarketConfig.from_dict(market_type, target_market, content))
        return registry

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> "MarketConfigRegistry":
        """Load a registry from a JSON file (defaults to the bundled content)."""
        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        registry = cls.from_dict(json.loads(config_path.read_text(encoding="utf-8")))
        logger.info("Loaded %d market configurations from %s", len(registry), config_path)
        return registry


# =============================================================================
# Singleton Instance
# =============================================================================

_registry_instance: Optional[MarketConfigRegistry] = None


def get_market_registry(path: Optional[str] = None) -> MarketConfigRegistry:
    """
    Get the market configuration registry singleton.

    Args:
        path: Optional JSON path (only used on first call)
    """
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = MarketConfigRegistry.from_file(path)
    return _registry_instance


def reset_market_registry() -> None:
    """Drop the singleton (used by tests)."""
    global _registry_instance
    _registry_instance = None


def get_market_config(market_type: Union[MarketType, str], target_market: str) -> MarketConfig:
    """Look up a configuration in the default registry."""
    return get_market_registry().get(market_type, target_market)
