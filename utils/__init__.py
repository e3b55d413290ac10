"""Utility modules for rug estimate functions."""

from utils.logging_config import configure_logging

__all__ = [
    "configure_logging",
]
