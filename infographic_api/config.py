"""Configuration settings for Infographic Studio."""

import os
import secrets
from functools import lru_cache
from typing import Any

from dotenv import load_dotenv

load_dotenv()

_GENERATED_SECRET = secrets.token_urlsafe(32)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment variables.

    Keyword arguments override the environment, which is how tests and
    embedding code build an isolated configuration.
    """

    def __init__(self, **overrides: Any) -> None:
        # Application
        self.APP_ENV: str = os.getenv("APP_ENV", "development").lower()
        self.DEBUG: bool = _env_bool("DEBUG", "false")

        # Database
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./infographic_studio.db")

        # JWT
        self.JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", _GENERATED_SECRET)
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", str(30 * 24 * 60)))
        self.JWT_COOKIE_EXPIRE_DAYS: int = int(os.getenv("JWT_COOKIE_EXPIRE_DAYS", "30"))

        # Passwords
        self.BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

        # Rate limiting
        self.RATE_LIMIT_ENABLED: bool = _env_bool("RATE_LIMIT_ENABLED", "true")
        self.RATE_LIMIT_MAX: int = int(os.getenv("RATE_LIMIT_MAX", "100"))
        self.RATE_LIMIT_WINDOW: str = os.getenv("RATE_LIMIT_WINDOW", "hour")

        # Request body
        self.MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(10 * 1024)))

        # Frontend / CORS
        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.CORS_ORIGINS: list[str] = [
            origin.strip() for origin in os.getenv("CORS_ORIGINS", self.FRONTEND_URL).split(",") if origin.strip()
        ]

        # Email
        self.SENDGRID_API_KEY: str | None = os.getenv("SENDGRID_API_KEY")
        self.EMAIL_FROM: str = os.getenv("EMAIL_FROM", "noreply@infographic.studio")

        # Logging
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR: str | None = os.getenv("LOG_DIR")

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def rate_limit(self) -> str:
        """Default limit in slowapi notation, e.g. ``100/hour``."""
        return f"{self.RATE_LIMIT_MAX}/{self.RATE_LIMIT_WINDOW}"

    def validate(self) -> list[str]:
        """Validate settings and return list of problems."""
        errors = []
        if not os.getenv("DATABASE_URL") and self.DATABASE_URL.startswith("sqlite:///./"):
            errors.append("DATABASE_URL is not set - using local SQLite file")
        if self.JWT_SECRET_KEY == _GENERATED_SECRET:
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        elif len(self.JWT_SECRET_KEY) < 32:
            errors.append("JWT_SECRET_KEY should be at least 32 characters long")
        if self.JWT_EXPIRE_MINUTES <= 0:
            errors.append("JWT_EXPIRE_MINUTES must be positive")
        if self.RATE_LIMIT_MAX <= 0:
            errors.append("RATE_LIMIT_MAX must be positive")
        if not self.FRONTEND_URL.startswith(("http://", "https://")):
            errors.append("FRONTEND_URL must be an http(s) URL")
        if self.is_production and not self.SENDGRID_API_KEY:
            errors.append("SENDGRID_API_KEY must be set in production")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance built from the process environment."""
    return Settings()
