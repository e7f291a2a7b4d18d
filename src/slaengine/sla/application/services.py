"""
SLA Application Services
=========================

Entry points used by the HTTP layer and export renderers.

- Pure functions: business_hours_between, sla_deadline, sla_outcome
- SLAService: evaluates snapshots against the configured calendar/allotments

Following SOLID principles:
- Dependency Inversion: configuration is read through ISLAConfigProvider
"""

from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional, Union

from slaengine.config import Priority
from slaengine.core import ValidationException
from slaengine.shared.infrastructure.logging import get_logger
from slaengine.sla.domain import (
    BusinessCalendar, BusinessCalendarConfig, SLAClock, SLAConfig,
    SlaOutcome, TicketSnapshot,
)

logger = get_logger(__name__)

CalendarLike = Union[BusinessCalendar, BusinessCalendarConfig]


# ========== Configuration Interface (Dependency Inversion) ==========

class ISLAConfigProvider(ABC):
    """Interface for SLA configuration access."""

    @abstractmethod
    def get_config(self) -> SLAConfig:
        """Get current SLA configuration."""


# ========== Pure Operations ==========

def _as_calendar(calendar: CalendarLike) -> BusinessCalendar:
    if isinstance(calendar, BusinessCalendar):
        return calendar
    return BusinessCalendar(calendar)


def business_hours_between(calendar: CalendarLike, start: datetime, end: datetime) -> float:
    """Business hours elapsed between two instants."""
    return _as_calendar(calendar).business_hours_between(start, end)


def sla_deadline(
    calendar: CalendarLike,
    allotment_table: Mapping[Priority, float],
    created_at: datetime,
    priority: Optional[Priority],
) -> datetime:
    """Instant at which the priority's allotment runs out."""
    return SLAClock(_as_calendar(calendar), allotment_table).deadline(created_at, priority)


def sla_outcome(
    calendar: CalendarLike,
    allotment_table: Mapping[Priority, float],
    ticket: TicketSnapshot,
    now: datetime,
) -> SlaOutcome:
    """SLA outcome of a single ticket at ``now``."""
    return SLAClock(_as_calendar(calendar), allotment_table).evaluate(ticket, now)


# ========== Application Services ==========

class SLAService:
    """
    Service for SLA evaluation of ticket snapshots.

    The clock is built once from the provider's configuration, so an invalid
    allotment table fails when the service is created.
    """

    def __init__(self, config_provider: ISLAConfigProvider):
        self._config_provider = config_provider
        self._config = config_provider.get_config()
        self._clock = SLAClock.from_config(self._config)
        logger.info(
            "SLA clock ready",
            extra={
                "timezone": self._config.calendar.timezone,
                "working_days": sorted(int(d) for d in self._config.calendar.working_days),
                "fallback_priority": self._config.fallback_priority.value,
            }
        )

    @property
    def config(self) -> SLAConfig:
        return self._config

    @property
    def clock(self) -> SLAClock:
        return self._clock

    def evaluate(self, ticket: TicketSnapshot, now: datetime) -> SlaOutcome:
        return self._clock.evaluate(ticket, now)

    def evaluate_many(
        self,
        tickets: Iterable[TicketSnapshot],
        now: datetime,
    ) -> Dict[str, SlaOutcome]:
        """
        Evaluate a batch of tickets.

        Returns:
            Dict mapping ticket id to SlaOutcome

        Raises:
            ValidationException: if a ticket id appears more than once
        """
        tickets = list(tickets)
        duplicates = sorted(
            ticket_id for ticket_id, count in Counter(t.id for t in tickets).items() if count > 1
        )
        if duplicates:
            raise ValidationException(
                "Duplicate ticket ids in snapshot",
                {"duplicate_ids": duplicates}
            )
        return {ticket.id: self._clock.evaluate(ticket, now) for ticket in tickets}
