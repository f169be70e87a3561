"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))
    contacts_path: Optional[str] = field(default_factory=lambda: os.getenv("CONTACTS_PATH"))
    market_config_path: Optional[str] = field(
        default_factory=lambda: os.getenv("MARKET_CONFIG_PATH")
    )

    # Tracking
    tracking_webhook_url: Optional[str] = field(
        default_factory=lambda: os.getenv("TRACKING_WEBHOOK_URL")
    )
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "5")))

    # Sessions
    session_idle_timeout: int = field(
        default_factory=lambda: int(os.getenv("SESSION_IDLE_TIMEOUT", "7200"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def resolved_contacts_path(self) -> str:
        """Contacts JSON file, defaulting to a file inside data_dir."""
        return self.contacts_path or os.path.join(self.data_dir, "contacts.json")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "data_dir": self.data_dir,
            "contacts_path": self.resolved_contacts_path,
            "market_config_path": self.market_config_path,
            "tracking_webhook_url": self.tracking_webhook_url,
            "request_timeout": self.request_timeout,
            "session_idle_timeout": self.session_idle_timeout,
        }
