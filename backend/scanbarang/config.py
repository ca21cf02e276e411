"""
Scan Barang Backend — Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

Recognized groups:
    - Datastore: DATABASE_URL, or DB_HOST / DB_USER / DB_PASS / DB_NAME
    - Identity provider: FIREBASE_CREDENTIALS (service account JSON), FIREBASE_API_KEY
    - Outbound mail: EMAIL_USER / EMAIL_PASS (+ SMTP_HOST / SMTP_PORT)
    - HTTP: PORT, BACKEND_HOST, CORS_ORIGINS
"""

from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments MUST
    provide the datastore, Firebase and mail credentials.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Explicit async URL wins; otherwise one is assembled from DB_* parts
    database_url: Optional[str] = Field(default=None, description="Async SQLAlchemy URL")
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432, ge=1, le=65535)
    db_user: str = Field(default="scanbarang")
    db_pass: str = Field(default="scanbarang")
    db_name: str = Field(default="scan_barang")

    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── Identity Provider (Firebase) ──────────────────────────────────────
    # What: Service-account JSON blob, exactly as downloaded from the console
    firebase_credentials: str = Field(default="")
    # What: Public Web API key used for the Identity Toolkit REST endpoints
    firebase_api_key: str = Field(default="")
    identity_toolkit_url: str = Field(default="https://identitytoolkit.googleapis.com/v1")
    identity_timeout: float = Field(default=10.0, gt=0, le=120)

    # ── Outbound Mail ─────────────────────────────────────────────────────
    email_user: str = Field(default="")
    email_pass: str = Field(default="")
    email_from_name: str = Field(default="Codedev App")
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587, ge=1, le=65535)

    # ── File Storage ──────────────────────────────────────────────────────
    # What: Root for images/, qr_codes/ and the .staging/ area
    storage_root: str = Field(default="./storage")

    # What: Maximum accepted upload size in bytes (5MB)
    max_file_size: int = Field(default=5_242_880, ge=1024, le=52_428_800)

    # What: Staged files older than this (seconds) are swept at startup
    staging_max_age: int = Field(default=3600, ge=60)

    # ── Clock ─────────────────────────────────────────────────────────────
    # What: Zone used for event creation and scan timestamps (WIB by default)
    app_timezone: str = Field(default="Asia/Jakarta")

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)

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

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def sqlalchemy_url(self) -> str:
        """
        The URL handed to create_async_engine.

        DATABASE_URL is used verbatim when set. Otherwise the DB_* parts are
        combined into an asyncpg URL (password is URL-escaped).
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{quote_plus(self.db_user)}:{quote_plus(self.db_pass)}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def mail_configured(self) -> bool:
        return bool(self.email_user and self.email_pass)

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every missing credential and raises one ValueError.
        """
        errors = []
        if not self.firebase_credentials:
            errors.append("FIREBASE_CREDENTIALS is not set (service account JSON).")
        if not self.firebase_api_key:
            errors.append("FIREBASE_API_KEY is not set (needed for login and password reset).")
        if not self.mail_configured:
            errors.append("EMAIL_USER / EMAIL_PASS are not set (verification and reset emails).")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
