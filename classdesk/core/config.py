# classdesk/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME, MAX_SESSION_DURATION, MIN_SESSION_DURATION


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )

    # Database
    database_url: str = Field(
        default=f"sqlite:///./{BRAND_NAME}.db",
        description="SQLAlchemy database URL",
    )
    sql_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    create_tables_on_startup: bool = Field(
        default=True,
        description="Run metadata.create_all when the API starts",
    )

    # API
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = Field(default="INFO", description="Root log level")

    # Scheduling rules
    min_session_minutes: int = Field(default=MIN_SESSION_DURATION, ge=1)
    max_session_minutes: int = Field(default=MAX_SESSION_DURATION, ge=1)

    # Reporting
    report_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single report request before it fails as a whole",
    )

    # Monitoring
    slow_operation_threshold_seconds: float = Field(default=1.0, gt=0)

    default_currency: str = "LKR"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @model_validator(mode="after")
    def _check_session_bounds(self) -> "Settings":
        if self.min_session_minutes > self.max_session_minutes:
            raise ValueError("min_session_minutes cannot exceed max_session_minutes")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
