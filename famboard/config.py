"""
Application configuration using Pydantic Settings
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Database
    DATABASE_URL: str = "sqlite:///./famboard.db"

    # Application
    TIMEZONE: str = "America/Los_Angeles"
    DEBUG: bool = False

    # PIN authentication
    PIN_MAX_FAILED_ATTEMPTS: int = 5
    PIN_LOCKOUT_MINUTES: int = 15
    PIN_SESSION_HOURS: int = 24
    PIN_COOKIE_NAME: str = "famboard-pin-session"
    PIN_COOKIE_SECURE: bool = False  # True behind HTTPS

    # Member identification (kiosk / member portal)
    MEMBER_COOKIE_NAME: str = "famboard-member-id"
    MEMBER_HEADER_NAME: str = "X-Member-Id"

    # Audit log retention
    AUDIT_DEFAULT_RETENTION_DAYS: int = 90
    AUDIT_MIN_RETENTION_DAYS: int = 30
    AUDIT_MAX_LIST_LIMIT: int = 500

    # Weather (Open-Meteo, no key required)
    WEATHER_API_URL: str = "https://api.open-meteo.com/v1/forecast"
    WEATHER_TIMEOUT_SECONDS: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def get_sqlalchemy_url(self) -> str:
        """
        Convert DATABASE_URL to SQLAlchemy format (postgresql+psycopg://)
        """
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+psycopg://", 1)
        return url

    def is_postgres(self) -> bool:
        return self.DATABASE_URL.startswith("postgresql")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance (singleton)
    """
    return Settings()
