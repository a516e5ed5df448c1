"""
Application Configuration

Settings are read from environment variables (or a local .env file)
using pydantic-settings. Import the module-level ``settings`` object or
call ``get_settings()`` where a dependency is preferred.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """SchoolScope API settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    python_env: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./schoolscope.db"
    database_echo: bool = False

    # Redis (rate limiting)
    redis_url: str = "redis://localhost:6379/0"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Sessions
    session_expiry_days: int = 30
    session_cookie_name: str = "schoolscope_session"

    # School edit moderation
    # When enabled, a second PENDING edit for the same school field is refused.
    reject_duplicate_pending_edits: bool = False

    # Email
    resend_api_key: str | None = None
    email_from: str = "SchoolScope <noreply@schoolscope.com.au>"
    frontend_url: str = "http://localhost:3000"

    @property
    def is_development(self) -> bool:
        return self.python_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.python_env.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Comma-separated CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


settings = get_settings()
