"""
Configuration Module
====================

Application settings and domain constants using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="ticket-warning-tracker", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Storage ==========
    data_path: Path = Field(
        default=Path("tickets.json"),
        description="JSON file holding EU/Global tickets and notifications"
    )

    # ========== Escalation ==========
    escalation_config_path: Path = Field(
        default=Path("escalation_config.yaml"),
        description="Path to escalation thresholds YAML file"
    )
    escalation_interval_seconds: int = Field(
        default=300,
        description="Seconds between periodic escalation checks (0 disables)",
        ge=0
    )
    business_timezone: str = Field(
        default="Europe/Bucharest",
        description="Timezone used to decide which calendar days are weekdays"
    )

    # ========== Time API ==========
    time_api_url: str = Field(
        default="https://worldtimeapi.org/api/timezone/Europe/Bucharest",
        description="Remote clock endpoint; empty string uses the local clock only"
    )
    time_api_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for remote clock requests",
        ge=0.1,
        le=30
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class TicketStatus(str, Enum):
    """Ticket statuses, declared in display order."""
    PENDING_INITIAL_CONTACT = "Pending Initial Contact"
    IN_PROGRESS_SUPPORT = "In Progress Support"
    PENDING_WARNING_3 = "Pending Warning 3"
    PENDING_WARNING_2 = "Pending Warning 2"
    PENDING_WARNING_1 = "Pending Warning 1"
    WARNING_3_SENT = "Warning 3 Sent"
    WARNING_2_SENT = "Warning 2 Sent"
    WARNING_1_SENT = "Warning 1 Sent"
    IN_PROGRESS_ENGINEERING = "In Progress Engineering"
    PENDING_CUSTOMER_RESPONSE = "Pending Customer Response"


class Severity(str, Enum):
    """Ticket severity levels."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Region(str, Enum):
    """Regions with their own ticket list."""
    EU = "EU"
    GLOBAL = "Global"


# ========== Status groups ==========

# Statuses whose age is measured against the first warning threshold
TRACKABLE_STATUSES = frozenset({
    TicketStatus.PENDING_INITIAL_CONTACT,
    TicketStatus.IN_PROGRESS_SUPPORT,
    TicketStatus.IN_PROGRESS_ENGINEERING,
    TicketStatus.PENDING_CUSTOMER_RESPONSE,
})

PENDING_WARNING_STATUSES = frozenset({
    TicketStatus.PENDING_WARNING_1,
    TicketStatus.PENDING_WARNING_2,
    TicketStatus.PENDING_WARNING_3,
})

SENT_WARNING_STATUSES = frozenset({
    TicketStatus.WARNING_1_SENT,
    TicketStatus.WARNING_2_SENT,
    TicketStatus.WARNING_3_SENT,
})

WARNING_STATUSES = PENDING_WARNING_STATUSES | SENT_WARNING_STATUSES


# ========== Lists for validation ==========

STATUSES = list(TicketStatus)
REGIONS = list(Region)
STATUS_ORDER = {status: index for index, status in enumerate(STATUSES)}
