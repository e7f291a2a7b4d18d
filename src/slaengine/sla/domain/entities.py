"""
SLA Domain Entities
====================

Read-only ticket snapshots and the SLA outcome derived from them.

Snapshots are handed to the engine by the data store for a reporting window.
The engine never mutates them and never keeps them past a call.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Tuple

from slaengine.config import (
    Priority, TicketStatus, SLAState, TERMINAL_STATUSES, IN_PROGRESS_STATUSES
)


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """Elapsed minutes from ``start`` to ``end``; None if either is missing."""
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 60


def terminal_timestamp(
    resolved_at: Optional[datetime],
    status_history: Iterable["StatusChange"],
) -> Optional[datetime]:
    """
    When a ticket entered its terminal state.

    ``resolved_at`` wins; without it the latest RESOLVED/CLOSED history entry
    is used.
    """
    if resolved_at is not None:
        return resolved_at
    terminal_changes = [
        change.changed_at for change in status_history
        if change.status in TERMINAL_STATUSES
    ]
    return max(terminal_changes) if terminal_changes else None


@dataclass(frozen=True)
class StatusChange:
    """A single status-history entry."""
    status: TicketStatus
    changed_at: datetime


@dataclass(frozen=True)
class TicketSnapshot:
    """
    Minimal read-only view of a ticket.

    ``resolved_at`` is present only once the ticket reached a terminal state.
    Association ids are grouping keys only.
    """

    id: str
    created_at: datetime
    status: TicketStatus
    priority: Optional[Priority] = None
    resolved_at: Optional[datetime] = None
    is_escalated: bool = False
    escalated_at: Optional[datetime] = None

    # Associations
    zone_id: Optional[str] = None
    customer_id: Optional[str] = None
    assigned_to_id: Optional[str] = None
    asset_id: Optional[str] = None

    title: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    rated_at: Optional[datetime] = None

    # Onsite visit lifecycle
    visit_started_at: Optional[datetime] = None
    visit_reached_at: Optional[datetime] = None
    visit_in_progress_at: Optional[datetime] = None
    visit_resolved_at: Optional[datetime] = None

    status_history: Tuple[StatusChange, ...] = field(default_factory=tuple)

    @property
    def is_terminal(self) -> bool:
        """SLA clock stops only when a terminal timestamp exists."""
        return self.resolved_at is not None

    @property
    def has_terminal_status(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_in_progress(self) -> bool:
        return self.status in IN_PROGRESS_STATUSES

    @property
    def is_open(self) -> bool:
        """Still being worked on: neither terminal nor cancelled."""
        return not self.has_terminal_status and self.status != TicketStatus.CANCELLED

    def resolution_timestamp(self) -> Optional[datetime]:
        """When the ticket entered a terminal state; see ``terminal_timestamp``."""
        return terminal_timestamp(self.resolved_at, self.status_history)

    def first_response_timestamp(self) -> Optional[datetime]:
        """First status change away from OPEN."""
        for change in sorted(self.status_history, key=lambda c: c.changed_at):
            if change.status != TicketStatus.OPEN:
                return change.changed_at
        return None

    def resolution_minutes(self) -> Optional[float]:
        return minutes_between(self.created_at, self.resolution_timestamp())

    def first_response_minutes(self) -> Optional[float]:
        return minutes_between(self.created_at, self.first_response_timestamp())

    def travel_minutes(self) -> Optional[float]:
        """Visit start until the engineer reached the site."""
        reached = self.visit_reached_at or self.visit_in_progress_at
        return minutes_between(self.visit_started_at, reached)

    def onsite_minutes(self) -> Optional[float]:
        """Arrival on site until the visit was resolved."""
        arrived = self.visit_reached_at or self.visit_in_progress_at
        return minutes_between(arrived, self.visit_resolved_at)

    @property
    def had_onsite_visit(self) -> bool:
        return self.visit_started_at is not None and (
            self.visit_reached_at is not None or self.visit_in_progress_at is not None
        )


@dataclass(frozen=True)
class SlaOutcome:
    """
    SLA evaluation of one ticket at a point in time.

    Derived on every query, never persisted by this engine.
    """

    ticket_id: str
    priority: Priority
    business_hours_used: float
    allotted_hours: float
    deadline: datetime
    is_breached: bool
    is_terminal: bool
    state: SLAState

    @property
    def remaining_hours(self) -> float:
        return max(0.0, self.allotted_hours - self.business_hours_used)

    def to_dict(self) -> dict:
        """Convert to dictionary for report payloads."""
        return {
            "ticket_id": self.ticket_id,
            "priority": self.priority.value,
            "business_hours_used": round(self.business_hours_used, 2),
            "allotted_hours": self.allotted_hours,
            "deadline": self.deadline.isoformat(),
            "is_breached": self.is_breached,
            "is_terminal": self.is_terminal,
            "state": self.state.value,
        }
