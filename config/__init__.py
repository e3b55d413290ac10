"""Rug estimate configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
"""

from config.settings import settings
from config.errors import RugEstimateError

__all__ = [
    "settings",
    "RugEstimateError",
]
