"""
ReadNote Server — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time.

The only optional dependency is the Redis connection string. Without it the
server still starts and serves static files; every /api call answers 503.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for a local, single-tenant deployment.
    Attributes are grouped by concern for readability.
    """

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)

    # ── Store (Redis) ─────────────────────────────────────────────────────
    # Format: redis://[:password@]host:port/db  (rediss:// for TLS)
    # Unset or empty: API runs in degraded mode and answers 503
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL; leave unset to disable the API",
    )

    # What: Attempts per store command when the transport fails
    # Mirrors a small fixed per-request retry budget; no backoff growth
    store_max_attempts: int = Field(default=3, ge=1, le=10)
    store_retry_wait: float = Field(default=0.1, ge=0, le=10)
    store_connect_timeout: float = Field(default=5.0, gt=0, le=60)

    @field_validator("redis_url")
    @classmethod
    def blank_url_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """An empty REDIS_URL means 'not configured', not 'connect to localhost'."""
        if v is None or not v.strip():
            return None
        return v.strip()

    # ── Static Files ──────────────────────────────────────────────────────
    # What: Directory holding the browser application
    # Every non-API path that does not name a file renders ENTRY_DOCUMENT
    static_root: str = Field(default="./public")
    entry_document: str = Field(default="index.html")

    # ── Errors ────────────────────────────────────────────────────────────
    # What: Whether 500 responses carry the underlying error message
    # True suits a local single-user install; turn off for shared hosting
    expose_error_details: bool = Field(default=True)

    # ── Logging ───────────────────────────────────────────────────────────
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

    # ── Developer Docs ────────────────────────────────────────────────────
    # Off by default: /docs and /openapi.json would otherwise shadow SPA routes
    enable_docs: bool = Field(default=False)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # REDIS_URL and redis_url both work
    }


# Singleton instance, imported throughout the application
settings = Settings()
