"""Run configuration using Pydantic Settings."""

import os
from pathlib import Path
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Conventional "keep me" tag keys used by operations teams
DEFAULT_EXCLUDE_TAG_KEYS: List[str] = [
    "donotdelete",
    "do-not-delete",
    "keep",
    "retain",
    "preserve",
    "protected",
    "backup",
]

# Naming conventions for golden images and disk templates
DEFAULT_EXCLUDE_NAME_PATTERNS: List[str] = [
    "golden",
    "base-image",
    "baseimage",
    "template",
    "gold-image",
]


def get_env_file() -> str:
    """
    Determine which .env file to load based on APP_ENV.

    Returns:
        Path to the .env file to load
    """
    app_env = os.getenv("APP_ENV", "development")
    base_dir = Path(__file__).parent.parent.parent  # backend/

    if app_env == "test":
        env_file = base_dir / ".env.test"
        if env_file.exists():
            return str(env_file)

    if app_env == "production":
        env_file = base_dir / ".env.production"
        if env_file.exists():
            return str(env_file)

    return str(base_dir / ".env")


class Settings(BaseSettings):
    """Run defaults loaded from environment variables.

    Every field is optional. The CLI reads these as defaults and builds an
    immutable ScanOptions value from them, so nothing below is consulted by
    the classification engine directly.
    """

    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "development"

    # Azure Service Principal (falls back to DefaultAzureCredential when unset)
    AZURE_TENANT_ID: str = ""
    AZURE_CLIENT_ID: str = ""
    AZURE_CLIENT_SECRET: str = ""

    # Output
    OUTPUT_DIR: str = "reports"
    REPORT_FORMAT: str = "csv"
    PREVIEW_ROWS: int = 20

    # Classification rule
    MIN_AGE_DAYS: int = 30
    EXCLUDE_TAG_KEYS: Annotated[List[str], NoDecode] = DEFAULT_EXCLUDE_TAG_KEYS
    EXCLUDE_NAME_PATTERNS: Annotated[List[str], NoDecode] = DEFAULT_EXCLUDE_NAME_PATTERNS

    # Scope and redaction toggles
    INCLUDE_SHARED: bool = False
    INCLUDE_IDENTIFIERS: bool = False
    INCLUDE_TAG_VALUES: bool = False
    MAX_CONCURRENCY: int = 1

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # console or json

    @field_validator("EXCLUDE_TAG_KEYS", "EXCLUDE_NAME_PATTERNS", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | List[str]) -> List[str]:
        """Parse a comma-separated string into a list, dropping blank entries."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("MIN_AGE_DAYS")
    @classmethod
    def validate_min_age_days(cls, v: int) -> int:
        """Reject negative age thresholds."""
        if v < 0:
            raise ValueError("MIN_AGE_DAYS must be zero or greater")
        return v

    @field_validator("MAX_CONCURRENCY")
    @classmethod
    def validate_max_concurrency(cls, v: int) -> int:
        """At least one subscription must be scanned at a time."""
        if v < 1:
            raise ValueError("MAX_CONCURRENCY must be at least 1")
        return v

    @field_validator("REPORT_FORMAT")
    @classmethod
    def validate_report_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("csv", "json"):
            raise ValueError(f"REPORT_FORMAT must be 'csv' or 'json', got '{v}'")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def normalize_log_format(cls, v: str) -> str:
        return v.strip().lower()


# Create global settings instance
settings = Settings()
