"""
Application Configuration

Uses Pydantic Settings for type-safe environment variable management.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # ========================================================================
    # APPLICATION
    # ========================================================================

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    DEBUG: bool = False

    # ========================================================================
    # QUESTION BANK
    # ========================================================================

    QUESTION_BANK_PATH: Path | None = Field(
        default=None,
        description="JSON file with assessment programs; empty bank if unset",
    )

    RANDOMIZE_QUESTIONS: bool = True

    QUESTION_SEED: int | None = Field(
        default=None, description="Seed for question shuffling (None = nondeterministic)"
    )

    @field_validator("QUESTION_BANK_PATH", mode="before")
    @classmethod
    def validate_question_bank_path(cls: type[Settings], v: str | Path | None) -> Path | None:  # noqa: ARG003
        """Convert string to Path and validate existence."""
        if v is None or v == "":
            return None

        path = Path(v) if isinstance(v, str) else v

        if not path.exists():
            raise ValueError(
                f"QUESTION_BANK_PATH does not exist: {path.absolute()}\n"
                "Please set QUESTION_BANK_PATH to a programs JSON file or leave it unset."
            )

        return path

    # ========================================================================
    # COMPUTED PROPERTIES
    # ========================================================================

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    @property
    def is_local(self) -> bool:
        """Check if running locally."""
        return self.ENVIRONMENT == "local"


# Global settings instance
settings = Settings()
