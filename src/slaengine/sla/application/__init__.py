"""
SLA Application Layer
======================

Application layer for the SLA module.

Contains:
- Services: Pure SLA operations and the configured SLAService
- DTOs: Boundary validation of ticket snapshots

This layer depends on the domain layer and the config provider interface,
but not on concrete infrastructure implementations.
"""

from slaengine.sla.application.dto import (
    StatusChangeDTO,
    TicketSnapshotDTO,
    parse_snapshots,
)
from slaengine.sla.application.services import (
    ISLAConfigProvider,
    SLAService,
    business_hours_between,
    sla_deadline,
    sla_outcome,
)

__all__ = [
    # DTOs
    "StatusChangeDTO",
    "TicketSnapshotDTO",
    "parse_snapshots",
    # Services
    "ISLAConfigProvider",
    "SLAService",
    "business_hours_between",
    "sla_deadline",
    "sla_outcome",
]
