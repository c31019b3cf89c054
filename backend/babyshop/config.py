"""
BabyShop Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; credentials are checked when the
       database connects, not at import.

Design Decision:
    Database credentials are NOT required fields on the model. A missing
    DB_USER / DB_PASSWORD must surface as a ConfigurationError from
    `Database.connect()`, before any network activity, rather than as a
    pydantic error at import time (which would make the package unimportable
    in tests and tooling).
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

from babyshop.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── SQL Server ────────────────────────────────────────────────────────
    db_server: str = Field(default="localhost", description="SQL Server host")
    db_database: str = Field(default="babyshop", description="Database name")
    db_user: str = Field(default="", description="SQL login (required)")
    db_password: str = Field(default="", description="SQL password (required)")
    db_port: int = Field(default=1433, ge=1, le=65535)

    # Transport flags, passed straight to the ODBC driver
    db_encrypt: bool = Field(default=False)
    db_trust_server_certificate: bool = Field(default=False)

    # What: ODBC driver name as registered in odbcinst.ini
    db_driver: str = Field(default="ODBC Driver 18 for SQL Server")

    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)

    # ── Connection retry (startup only) ───────────────────────────────────
    # Fixed delay between attempts; there is no retry once connected.
    db_connect_retries: int = Field(default=3, ge=1, le=20)
    db_connect_retry_delay_ms: int = Field(default=500, ge=0, le=60_000)

    # ── Google Gemini (image recognition) ─────────────────────────────────
    # Empty key means the analyze endpoint answers with a fallback analysis
    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default="gemini-1.5-flash")

    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: int = Field(default=2, ge=1, le=30)
    retry_max_wait: int = Field(default=10, ge=5, le=120)

    cb_failure_threshold: int = Field(default=5, ge=2, le=20)
    cb_recovery_timeout: int = Field(default=60, ge=10, le=300)

    # ── Product images ────────────────────────────────────────────────────
    images_root: str = Field(default="./public/images/products")
    images_url_prefix: str = Field(default="/images/products")

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=5000, ge=1024, le=65535)

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

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def vision_enabled(self) -> bool:
        return bool(self.gemini_api_key) and self.gemini_api_key != "your_gemini_api_key_here"

    def require_database_credentials(self) -> None:
        """
        What:  Fails fast when the SQL login is not configured.
        When:  Called by Database.connect() before the first attempt.
        Raises:
            ConfigurationError listing every missing variable.
        """
        missing = [
            name
            for name, value in (("DB_USER", self.db_user), ("DB_PASSWORD", self.db_password))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                message=f"Missing database credentials: {', '.join(missing)}",
                context={"missing": missing},
            )

    @property
    def database_url(self) -> URL:
        """
        What:  SQLAlchemy URL for the async ODBC dialect.
        Why URL.create: the password may contain characters that would need
               escaping in a hand-built connection string.
        """
        return URL.create(
            "mssql+aioodbc",
            username=self.db_user,
            password=self.db_password,
            host=self.db_server,
            port=self.db_port,
            database=self.db_database,
            query={
                "driver": self.db_driver,
                "Encrypt": "yes" if self.db_encrypt else "no",
                "TrustServerCertificate": "yes" if self.db_trust_server_certificate else "no",
            },
        )


settings = Settings()
