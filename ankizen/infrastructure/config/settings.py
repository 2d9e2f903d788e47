"""Application settings and configuration management."""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Look for .env file in the project root, then the working directory
env_file = Path(__file__).parent.parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file)
else:
    load_dotenv(".env", verbose=False)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database Configuration
    database_path: str = Field(
        default="data/ankizen.db", alias="ANKIZEN_DATABASE_PATH"
    )

    # Deck defaults applied when a deck is created
    new_cards_per_day: int = Field(default=20, alias="ANKIZEN_NEW_CARDS_PER_DAY")
    max_reviews_per_day: int = Field(
        default=200, alias="ANKIZEN_MAX_REVIEWS_PER_DAY"
    )
    initial_good_interval: int = Field(
        default=3, alias="ANKIZEN_INITIAL_GOOD_INTERVAL"
    )
    initial_easy_interval: int = Field(
        default=5, alias="ANKIZEN_INITIAL_EASY_INTERVAL"
    )
    lapse_again_interval: int = Field(
        default=1, alias="ANKIZEN_LAPSE_AGAIN_INTERVAL"
    )

    # Leech detection
    leech_consecutive_threshold: int = Field(
        default=4, alias="ANKIZEN_LEECH_CONSECUTIVE_THRESHOLD"
    )
    leech_total_threshold: int = Field(
        default=8, alias="ANKIZEN_LEECH_TOTAL_THRESHOLD"
    )
    leech_mature_interval: int = Field(
        default=21, alias="ANKIZEN_LEECH_MATURE_INTERVAL"
    )
    leech_quarantine_days: int = Field(
        default=180, alias="ANKIZEN_LEECH_QUARANTINE_DAYS"
    )
    leech_ease_penalty: float = Field(
        default=0.5, alias="ANKIZEN_LEECH_EASE_PENALTY"
    )

    # Study session
    shuffle_study_queue: bool = Field(
        default=False, alias="ANKIZEN_SHUFFLE_STUDY_QUEUE"
    )
    custom_study_limit: int = Field(default=50, alias="ANKIZEN_CUSTOM_STUDY_LIMIT")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="ANKIZEN_LOG_LEVEL")
    log_file: str = Field(default="logs/ankizen.log", alias="ANKIZEN_LOG_FILE")

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
