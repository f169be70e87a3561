"""
Utility modules for the partner intake engine.
"""

from .config import Config
from .logging_setup import configure_logging

__all__ = ["Config", "configure_logging"]
