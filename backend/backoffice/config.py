"""Application configuration using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),  # Load root .env first, then backend/.env (overrides)
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./backoffice.db"

    # Application
    log_level: str = "info"
    timezone: str = "UTC"  # Calendar used for date-scoped identifiers (invoice codes)

    # Sequence identifiers
    sequence_max_attempts: int = Field(default=10, ge=1)
    sequence_padding: int = Field(default=3, ge=1)
    sequence_fallback_digits: int = Field(default=6, ge=1)
    invoice_number_padding: int = Field(default=4, ge=1)

    # Re-allocations allowed when an insert loses the race on a unique identifier
    insert_max_attempts: int = Field(default=3, ge=1)


settings = Settings()
