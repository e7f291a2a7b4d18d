"""
Shared fixtures for the SLA engine tests.

All instants fall in the week of Monday 2025-09-15 (Saturday 2025-09-20 is a
working day, Sunday 2025-09-14/21 is not).
"""
from datetime import datetime, timezone

import pytest

from slaengine.config import DEFAULT_ALLOTMENT_HOURS, Priority, TicketStatus
from slaengine.reports import NameDirectory, ReportAssembler
from slaengine.sla.domain import (
    BusinessCalendar, SLAClock, StatusChange, TicketSnapshot
)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """UTC instant on 2025-09-<day>."""
    return datetime(2025, 9, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def calendar():
    """Default calendar: Mon-Sat, 09:00-17:30, UTC."""
    return BusinessCalendar()


@pytest.fixture
def clock(calendar):
    return SLAClock(calendar, DEFAULT_ALLOTMENT_HOURS)


@pytest.fixture
def make_ticket():
    """Factory for snapshots with sensible defaults."""
    def _make(**overrides) -> TicketSnapshot:
        fields = {
            "id": "T-1",
            "created_at": at(15, 10),
            "status": TicketStatus.OPEN,
            "priority": Priority.MEDIUM,
        }
        fields.update(overrides)
        return TicketSnapshot(**fields)
    return _make


@pytest.fixture
def now():
    """Saturday 2025-09-20 12:00 UTC."""
    return at(20, 12)


@pytest.fixture
def tickets():
    """
    Five tickets covering met, breached, overdue, on-track and cancelled cases.

    1: CRITICAL resolved in 3 business hours (met)
    2: HIGH closed after 12.5 business hours, escalated (breached)
    3: MEDIUM still open past its Friday 16:00 deadline (overdue)
    4: LOW in progress with an onsite visit (on track)
    5: no priority, cancelled, no zone (held to LOW)
    """
    return [
        TicketSnapshot(
            id="1", created_at=at(15, 10), status=TicketStatus.RESOLVED,
            priority=Priority.CRITICAL, resolved_at=at(15, 13),
            zone_id="z1", customer_id="c1", assigned_to_id="a1", asset_id="m1",
            title="Spindle alarm", rating=5,
            status_history=(
                StatusChange(TicketStatus.ASSIGNED, at(15, 10, 30)),
                StatusChange(TicketStatus.RESOLVED, at(15, 13)),
            ),
        ),
        TicketSnapshot(
            id="2", created_at=at(15, 11), status=TicketStatus.CLOSED,
            priority=Priority.HIGH, resolved_at=at(16, 15),
            is_escalated=True, escalated_at=at(16, 9),
            zone_id="z1", customer_id="c1", assigned_to_id="a2", asset_id="m1",
            title="Coolant leak", rating=3,
            status_history=(
                StatusChange(TicketStatus.IN_PROGRESS, at(15, 12)),
                StatusChange(TicketStatus.CLOSED, at(16, 15)),
            ),
        ),
        TicketSnapshot(
            id="3", created_at=at(17, 9), status=TicketStatus.OPEN,
            priority=Priority.MEDIUM, zone_id="z2", customer_id="c2",
        ),
        TicketSnapshot(
            id="4", created_at=at(19, 10), status=TicketStatus.IN_PROGRESS,
            priority=Priority.LOW, zone_id="z2", customer_id="c2", assigned_to_id="a1",
            visit_started_at=at(19, 11), visit_reached_at=at(19, 11, 45),
            visit_resolved_at=at(19, 13, 45),
            status_history=(StatusChange(TicketStatus.ASSIGNED, at(19, 10, 30)),),
        ),
        TicketSnapshot(
            id="5", created_at=at(20, 9), status=TicketStatus.CANCELLED,
            customer_id="c3",
        ),
    ]


@pytest.fixture
def directory():
    return NameDirectory(
        zones={"z1": "North", "z2": "South"},
        customers={"c1": "Acme Tools", "c2": "Birch Metals", "c3": "Cobalt Works"},
        agents={"a1": "Asha", "a2": "Ben"},
    )


@pytest.fixture
def assembler(clock):
    return ReportAssembler(clock)
