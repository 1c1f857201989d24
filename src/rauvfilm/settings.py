"""Application settings and configuration."""

import sys
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRET_DEFAULTS = {"change-me-in-production", "secret"}

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RAUV_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "rauvfilm"
    env: str = "development"
    allowed_origins: str = "http://localhost:3000"

    # Database
    database_url: str = "sqlite:///./rauvfilm.db"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log output format",
    )

    # Identity field encryption
    encryption_secret: str = "change-me-in-production"
    encryption_salt: str = "rauvfilm-identity-fields"

    # Review fetching
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound for a single review page fetch",
    )
    desktop_user_agent: str = DESKTOP_USER_AGENT
    mobile_user_agent: str = MOBILE_USER_AGENT

    # Review verification rules
    required_review_keywords: list[str] = Field(
        default_factory=lambda: ["라우브필름", "본식DVD", "rauvfilm"],
        description="A review title must contain at least one of these (case-insensitive)",
    )
    min_review_characters: int = 500

    # Discount amounts (KRW)
    deposit_amount: int = 100_000
    referral_discount_amount: int = 10_000
    review_discount_amount: int = 10_000
    new_year_discount_amount: int = 50_000


# Global settings instance
settings = Settings()

# ── Security validation ──────────────────────────────────────────────
if settings.env == "production":
    if settings.encryption_secret in _INSECURE_SECRET_DEFAULTS or len(settings.encryption_secret) < 32:
        print(
            "\n❌  FATAL: RAUV_ENCRYPTION_SECRET is insecure or too short (min 32 chars).\n"
            "   Set a strong random value:  openssl rand -hex 32\n",
            file=sys.stderr,
        )
        sys.exit(1)
