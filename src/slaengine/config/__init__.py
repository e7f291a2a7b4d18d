"""
Configuration Module
====================

Application settings and the closed value sets shared by every module.

Settings are loaded from environment variables (and a local ``.env``) using
pydantic-settings. Business calendar and SLA allotments live in the YAML file
referenced by ``sla_config_path`` so every report path reads the same table.
"""

from enum import Enum, IntEnum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="sla-engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== SLA Configuration ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to business calendar / SLA allotment YAML file"
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
        """Normalise and check the log level name."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.upper()
        if level not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class Priority(str, Enum):
    """Ticket priority levels."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses, as stored by the ticket domain."""
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    IN_PROCESS = "IN_PROCESS"
    ONSITE_VISIT = "ONSITE_VISIT"
    ONSITE_VISIT_STARTED = "ONSITE_VISIT_STARTED"
    ONSITE_VISIT_REACHED = "ONSITE_VISIT_REACHED"
    ONSITE_VISIT_IN_PROGRESS = "ONSITE_VISIT_IN_PROGRESS"
    ONSITE_VISIT_RESOLVED = "ONSITE_VISIT_RESOLVED"
    ONSITE_VISIT_PENDING = "ONSITE_VISIT_PENDING"
    ONSITE_VISIT_COMPLETED = "ONSITE_VISIT_COMPLETED"
    SPARE_NEEDED = "SPARE_NEEDED"
    WAITING_PO = "WAITING_PO"
    PO_NEEDED = "PO_NEEDED"
    PO_REACHED = "PO_REACHED"
    PO_RECEIVED = "PO_RECEIVED"
    FIXED = "FIXED"
    REOPENED = "REOPENED"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class SLAState(str, Enum):
    """SLA status states."""
    ON_TRACK = "ON_TRACK"
    AT_RISK = "AT_RISK"
    BREACHED = "BREACHED"
    MET = "MET"


class RateKind(str, Enum):
    """
    Empty-population policy for percentage rates.

    COMPLIANCE rates are vacuously 100 on an empty population,
    INCIDENCE rates (resolution, escalation) are 0.
    """
    COMPLIANCE = "compliance"
    INCIDENCE = "incidence"


class Weekday(IntEnum):
    """Days of week, numbered like ``datetime.weekday()``."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


# ========== Status Groups ==========

TERMINAL_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})
IN_PROGRESS_STATUSES = frozenset({
    TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS, TicketStatus.IN_PROCESS,
    TicketStatus.ONSITE_VISIT, TicketStatus.ONSITE_VISIT_STARTED,
    TicketStatus.ONSITE_VISIT_REACHED, TicketStatus.ONSITE_VISIT_IN_PROGRESS,
    TicketStatus.ONSITE_VISIT_RESOLVED, TicketStatus.ONSITE_VISIT_PENDING,
    TicketStatus.ONSITE_VISIT_COMPLETED,
})

DEFAULT_ALLOTMENT_HOURS = {
    Priority.CRITICAL: 4.0,
    Priority.HIGH: 8.0,
    Priority.MEDIUM: 24.0,
    Priority.LOW: 48.0,
}

UNKNOWN_LABEL = "Unknown"
UNASSIGNED_LABEL = "Unassigned"
