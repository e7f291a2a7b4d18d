"""
Reports Application Layer
=========================

Contains:
- Services: ReportAssembler, composing the SLA clock and metrics primitives
- DTOs: Report shapes consumed by the HTTP layer and file renderers
"""

from slaengine.reports.application.dto import (
    AgentProductivityReport,
    CustomerPerformanceReport,
    CustomerPerformanceRow,
    CustomerSatisfactionReport,
    DistributionEntry,
    ExecutiveSummaryReport,
    GroupPerformanceRow,
    MachineDowntimeReport,
    NameDirectory,
    SlaPerformanceReport,
    TicketSummaryReport,
    TrendPoint,
    ZonePerformanceReport,
)
from slaengine.reports.application.services import (
    EvaluatedTicket,
    ReportAssembler,
    format_minutes,
    machine_health_score,
    risk_level,
)

__all__ = [
    # DTOs
    "AgentProductivityReport",
    "CustomerPerformanceReport",
    "CustomerPerformanceRow",
    "CustomerSatisfactionReport",
    "DistributionEntry",
    "ExecutiveSummaryReport",
    "GroupPerformanceRow",
    "MachineDowntimeReport",
    "NameDirectory",
    "SlaPerformanceReport",
    "TicketSummaryReport",
    "TrendPoint",
    "ZonePerformanceReport",
    # Services
    "EvaluatedTicket",
    "ReportAssembler",
    "format_minutes",
    "machine_health_score",
    "risk_level",
]
