# backend/smarttutor/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development", description="Deployment environment name"
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    # Database
    database_url: str = Field(
        default="sqlite:///./smarttutor.db",
        description="SQLAlchemy URL for the reservation store",
    )
    db_statement_timeout_ms: int = Field(
        default=15000,
        description="Per-statement timeout (Postgres statement_timeout / SQLite busy timeout)",
    )
    db_pool_timeout_seconds: int = Field(
        default=5, description="Seconds to wait for a pooled connection before failing"
    )
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=5)

    # Redis (per-slot booking locks)
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_socket_timeout_seconds: float = Field(default=1.0)
    lock_namespace: str = Field(default="smarttutor")
    booking_lock_enabled: bool = Field(
        default=True,
        description="Serialize check-then-create per slot key with a Redis mutex",
    )
    booking_lock_ttl_seconds: int = Field(default=30)

    # Notifications
    notifications_enabled: bool = Field(default=True)
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        description="Email delivery backend; console only logs",
    )
    resend_api_key: Optional[SecretStr] = Field(default=None)
    from_email: str = Field(default=f"{BRAND_NAME} <bookings@smarttutor.app>")
    frontend_url: str = Field(default="http://localhost:3000")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        return str(value or "INFO").strip().upper()

    @field_validator("booking_lock_ttl_seconds", "db_pool_timeout_seconds", "db_statement_timeout_ms")
    @classmethod
    def _require_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
