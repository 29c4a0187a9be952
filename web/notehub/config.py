"""
NoteHub Web — Application Configuration
=========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Deployments point NOTES_API_URL (and NOTES_API_TOKEN if the upstream
    requires one) at the remote notes API.
    """

    # ── Remote Notes API ──────────────────────────────────────────────────
    # What: Base URL of the upstream notes service (list/create/read)
    notes_api_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the remote notes API",
    )

    # What: Static bearer token sent with every upstream request
    # Unset or empty means no Authorization header is sent.
    notes_api_token: Optional[str] = Field(default=None)

    # What: Total timeout (seconds) for one upstream request
    api_timeout: float = Field(default=10.0, gt=0, le=120)

    # What: Page size passed through to the upstream list endpoint
    notes_per_page: int = Field(default=12, ge=1, le=100)

    # ── Retry Configuration ───────────────────────────────────────────────
    # What: Tenacity settings for upstream reads (list/detail)
    # 1 attempt = no retries. Creates are never retried.
    api_retry_attempts: int = Field(default=1, ge=1, le=10)
    retry_min_wait: float = Field(default=0.5, ge=0, le=30)
    retry_max_wait: float = Field(default=5.0, ge=0, le=120)

    # ── Query Cache ───────────────────────────────────────────────────────
    # What: Seconds a cached query stays fresh before the next read refetches
    # A hydrated entry must outlive the render that follows the prefetch,
    # so 0 is not allowed.
    query_stale_seconds: float = Field(default=60.0, gt=0, le=3600)

    # What: Entries unused this long are dropped; the cache never holds more
    # than query_max_entries (least recently used go first)
    query_gc_seconds: float = Field(default=300.0, gt=0, le=86400)
    query_max_entries: int = Field(default=1000, ge=1, le=100000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    web_host: str = Field(default="0.0.0.0")
    web_port: int = Field(default=3000, ge=1024, le=65535)

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

    @field_validator("notes_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """httpx joins base_url and relative paths; a trailing slash doubles up."""
        return v.rstrip("/")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # NOTES_API_URL and notes_api_url both work
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Checks each required field and raises ValueError with guidance.
        """
        errors = []
        if not self.notes_api_url.startswith(("http://", "https://")):
            errors.append(
                f"NOTES_API_URL '{self.notes_api_url}' must be an http(s) URL."
            )
        if self.retry_min_wait > self.retry_max_wait:
            errors.append("RETRY_MIN_WAIT must not exceed RETRY_MAX_WAIT.")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance — imported throughout the application
settings = Settings()
