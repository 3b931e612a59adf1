"""
Configuration Management for DzBudget

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (budget insights)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Give up on an insight request after this many seconds"
    )


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DZBUDGET_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the persisted state blobs"
    )

    # Blob keys, kept identical to the browser version so exported data loads as-is
    categories_key: str = Field(default="dz_budget_categories")
    transactions_key: str = Field(default="dz_budget_transactions")
    savings_goal_key: str = Field(default="dz_budget_savings_goal")

    audit_log_filename: str = Field(
        default="audit_log.jsonl",
        description="Audit trail file inside data_dir"
    )

    @field_validator("categories_key", "transactions_key", "savings_goal_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys become file names, so keep them to a safe alphabet."""
        if not v or not all(c.isalnum() or c in "_-" for c in v):
            raise ValueError(f"Invalid storage key: {v!r}")
        return v

    @property
    def audit_log_path(self) -> Path:
        return self.data_dir / self.audit_log_filename


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Defaults for a fresh install
    default_language: str = Field(
        default="fr",
        pattern="^(fr|ar)$",
        description="Interface language on startup"
    )
    default_savings_goal: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Savings goal used when none has been saved yet"
    )

    # Validation thresholds
    max_transaction_amount: Decimal = Field(
        default=Decimal("10000000"),
        gt=0,
        description="Amounts above this are flagged for double-checking"
    )
    max_description_length: int = Field(
        default=200,
        ge=10,
        le=1000,
        description="Maximum length of a transaction description"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration
    # (the app runs without a Gemini key, only insights are unavailable)

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("gemini", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
