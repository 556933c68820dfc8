"""Application settings using Pydantic BaseSettings."""

import re

from pydantic_settings import BaseSettings, SettingsConfigDict


def to_async_database_url(url: str) -> str:
    """Convert a database URL for the async drivers SQLAlchemy expects."""
    # Hosted Postgres hands out postgres:// URLs, SQLAlchemy async wants asyncpg
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("sqlite://") and "+aiosqlite" not in url:
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    # asyncpg doesn't support sslmode, it uses ssl parameter
    if "sslmode=" in url:
        url = re.sub(r'[?&]sslmode=[^&]*', '', url)
        url = url.rstrip('?&')
    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./estate_crm.db"
    database_echo: bool = False

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # "text" for readable local output
    api_v1_prefix: str = "/api/v1"
    cors_allow_origins: list[str] = ["*"]

    # Duplicate detection
    duplicate_min_phone_digits: int = 1  # the contacts list UI used 10

    # Merge
    merge_atomic: bool = True  # False commits each merge step on its own

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def async_database_url(self) -> str:
        """Database URL rewritten for the async driver."""
        return to_async_database_url(self.database_url)


settings = Settings()
