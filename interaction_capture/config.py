"""Application settings and configuration"""

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

# Values shipped in example env files; treated the same as "not set".
PLACEHOLDER_GATEWAY_URLS = ("", "https://placeholder.supabase.co")
PLACEHOLDER_GATEWAY_KEYS = ("", "placeholder-key")


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./interactions.db"

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # First admin account, created on startup if missing
    BOOTSTRAP_ADMIN_EMAIL: Optional[str] = None
    BOOTSTRAP_ADMIN_PASSWORD: Optional[str] = None

    # Persistence gateway: "database" (local SQLAlchemy) or "rest" (remote table API)
    GATEWAY_BACKEND: str = "database"
    GATEWAY_URL: Optional[str] = None
    GATEWAY_API_KEY: Optional[str] = None
    GATEWAY_TABLE: str = "interactions"
    SUBMIT_TIMEOUT_SECONDS: float = 10.0

    # Form options lookup
    OPTIONS_CACHE_TTL_SECONDS: float = 300.0
    LOOKUP_TIMEOUT_SECONDS: float = 5.0
    SEED_DEFAULT_OPTIONS: bool = True

    # App config
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Sentry Error Tracking (optional)
    SENTRY_DSN: str = ""  # Empty string = disabled
    SENTRY_ENVIRONMENT: str = "production"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def gateway_configured(self) -> bool:
        """True when the selected persistence backend has what it needs to run."""
        backend = self.GATEWAY_BACKEND.strip().lower()
        if backend == "database":
            return bool(self.DATABASE_URL)
        if backend == "rest":
            url = (self.GATEWAY_URL or "").strip()
            key = (self.GATEWAY_API_KEY or "").strip()
            return url not in PLACEHOLDER_GATEWAY_URLS and key not in PLACEHOLDER_GATEWAY_KEYS
        return False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
