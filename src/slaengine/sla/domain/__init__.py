"""
SLA Domain Layer
================

Domain layer for the SLA module.

Contains:
- Entities: Read-only ticket snapshots and derived SLA outcomes
- Value Objects: Validated configuration (BusinessCalendarConfig, SLAConfig)
- Domain Services: Stateless calculators (BusinessCalendar, SLAClock)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from slaengine.sla.domain.entities import (
    StatusChange,
    TicketSnapshot,
    SlaOutcome,
    minutes_between,
    terminal_timestamp,
)
from slaengine.sla.domain.value_objects import (
    BusinessCalendarConfig,
    DurationBounds,
    OutlierPolicy,
    ReportLimits,
    SLAConfig,
    BusinessCalendar,
    SLAClock,
    elapsed_hours,
)

__all__ = [
    # Entities
    "StatusChange",
    "TicketSnapshot",
    "SlaOutcome",
    "minutes_between",
    "terminal_timestamp",
    # Value Objects & Services
    "BusinessCalendarConfig",
    "DurationBounds",
    "OutlierPolicy",
    "ReportLimits",
    "SLAConfig",
    "BusinessCalendar",
    "SLAClock",
    "elapsed_hours",
]
