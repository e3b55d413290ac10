"""Rug estimate configuration settings.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import Dict, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for local configuration
load_dotenv()


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Estimate review
    price_change_feedback_threshold: float = field(
        default_factory=lambda: float(os.getenv("PRICE_CHANGE_FEEDBACK_THRESHOLD", "0.20"))
    )

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: os.getenv("LOG_JSON", "false").lower() == "true")

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.price_change_feedback_threshold < 0:
            raise ValueError("PRICE_CHANGE_FEEDBACK_THRESHOLD must be >= 0")

    @property
    def firebase_options(self) -> Optional[Dict[str, str]]:
        """Options for firebase_admin.initialize_app, or None for defaults."""
        if not self.firebase_project_id:
            return None
        return {"projectId": self.firebase_project_id}


# Singleton settings instance
settings = Settings()
