"""
Natours Backend — Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the application factory; tests build their own Settings.
When:  Loaded once at module import time; checked again in the lifespan.

Environment mode:
    A single `environment` field (development | production) is handed
    explicitly to the error responder and decides whether request logging
    is installed.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Runtime mode. Development responses are verbose; production ones are sanitized."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults matching the production Natours deployment.
    Attributes are grouped by concern for readability.
    """

    # ── Runtime ───────────────────────────────────────────────────────────
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    app_name: str = Field(default="Natours")

    backend_host: str = Field(default="127.0.0.1")
    backend_port: int = Field(default=3000, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── CORS ──────────────────────────────────────────────────────────────
    # "*" together with credentials is the shipped default.
    # It is kept as-is; tighten it here, not in code.
    cors_origins: str = Field(default="*")
    cors_allow_credentials: bool = Field(default=True)

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return _split_csv(self.cors_origins)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    rate_limit_requests: int = Field(default=100, ge=1, le=100_000)
    rate_limit_window: int = Field(default=3600, ge=1, le=86400)  # seconds
    rate_limit_path_prefix: str = Field(default="/api")
    rate_limit_message: str = Field(
        default="Too many requests from this IP, please try again in an hour!"
    )
    # Use the first X-Forwarded-For hop as the client identity
    trust_proxy: bool = Field(default=False)

    # ── Body Parsing & Sanitization ───────────────────────────────────────
    # 10kb, applied to JSON and form-encoded bodies
    body_limit_bytes: int = Field(default=10 * 1024, ge=1, le=10 * 1024 * 1024)

    hpp_whitelist: str = Field(
        default="duration,ratingsQuantity,ratingsAverage,maxGroupSize,difficulty,prize"
    )

    @property
    def hpp_whitelist_list(self) -> List[str]:
        return _split_csv(self.hpp_whitelist)

    # None drops offending keys; a string replaces "$" and "." inside them
    injection_replace_with: Optional[str] = Field(default=None)

    # ── Content Security Policy ───────────────────────────────────────────
    # The payment provider's script/connect/frame origins must stay listed,
    # otherwise the hosted checkout cannot load in the browser.
    csp_script_src: str = Field(
        default="'self',https://cdnjs.cloudflare.com,https://js.stripe.com"
    )
    csp_connect_src: str = Field(
        default=(
            "'self',http://127.0.0.1:3000,https://js.stripe.com,"
            "https://api.stripe.com,https://checkout.stripe.com"
        )
    )
    csp_frame_src: str = Field(
        default="'self',https://js.stripe.com,https://checkout.stripe.com"
    )

    @property
    def csp_overrides(self) -> dict:
        """CSP directives that replace the hardening defaults."""
        return {
            "script-src": _split_csv(self.csp_script_src),
            "connect-src": _split_csv(self.csp_connect_src),
            "frame-src": _split_csv(self.csp_frame_src),
        }

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Reports risky settings before the server starts taking traffic.
        When:  Called during app startup (lifespan).
        How:   Raises ValueError listing every problem; the lifespan logs it.
        """
        if self.environment != Environment.PRODUCTION:
            return
        errors = []
        if "*" in self.cors_origins_list and self.cors_allow_credentials:
            errors.append(
                "CORS_ORIGINS allows every origin while CORS_ALLOW_CREDENTIALS is on"
            )
        if not any(src.startswith("https://") for src in _split_csv(self.csp_frame_src)):
            errors.append("CSP_FRAME_SRC lists no https origin for the payment provider")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported by the application factory
settings = Settings()
