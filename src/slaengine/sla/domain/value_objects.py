"""
SLA Value Objects
==================

Immutable value objects and pure calculators for the SLA domain.

- BusinessCalendarConfig / SLAConfig: validated configuration loaded from YAML
- BusinessCalendar: business-hours arithmetic over the working calendar
- SLAClock: SLA deadlines and per-ticket outcomes

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared between requests.
"""

from datetime import date, datetime, time, timedelta, timezone
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from slaengine.config import (
    Priority, SLAState, Weekday, DEFAULT_ALLOTMENT_HOURS
)
from slaengine.core import ConfigurationException
from slaengine.shared.infrastructure.logging import get_logger
from slaengine.sla.domain.entities import TicketSnapshot, SlaOutcome

logger = get_logger(__name__)

_MONDAY_TO_SATURDAY = frozenset({
    Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY,
    Weekday.THURSDAY, Weekday.FRIDAY, Weekday.SATURDAY,
})


def elapsed_hours(start: datetime, end: datetime) -> float:
    """Absolute elapsed hours; aware instants are measured in UTC."""
    if start.tzinfo is not None:
        start = start.astimezone(timezone.utc)
        end = end.astimezone(timezone.utc)
    return (end - start).total_seconds() / 3600


def _advance(instant: datetime, hours: float) -> datetime:
    if instant.tzinfo is None:
        return instant + timedelta(hours=hours)
    moved = instant.astimezone(timezone.utc) + timedelta(hours=hours)
    return moved.astimezone(instant.tzinfo)


# ========== Configuration Value Objects ==========

class BusinessCalendarConfig(BaseModel):
    """
    Working-day set and daily active window.

    The window never wraps past midnight.
    """
    model_config = ConfigDict(frozen=True)

    working_days: FrozenSet[Weekday] = Field(
        default=_MONDAY_TO_SATURDAY,
        description="Days on which the SLA clock runs"
    )
    day_start_hour: int = Field(default=9, ge=0, le=23)
    day_start_minute: int = Field(default=0, ge=0, le=59)
    day_end_hour: int = Field(default=17, ge=0, le=23)
    day_end_minute: int = Field(default=30, ge=0, le=59)
    timezone: str = Field(default="UTC", description="IANA timezone of the calendar")

    @field_validator("working_days", mode="before")
    @classmethod
    def parse_working_days(cls, v):
        """Accept weekday names ("MONDAY") as well as 0-6 numbers."""
        if isinstance(v, (str, int)):
            v = [v]
        parsed = []
        for day in v:
            if isinstance(day, str) and not day.isdigit():
                try:
                    parsed.append(Weekday[day.strip().upper()])
                except KeyError:
                    raise ValueError(f"unknown weekday '{day}'") from None
            else:
                parsed.append(int(day))
        return frozenset(parsed)

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: FrozenSet[Weekday]) -> FrozenSet[Weekday]:
        if not v:
            raise ValueError("working_days must contain at least one day")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone '{v}'") from None
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "BusinessCalendarConfig":
        if self.day_start >= self.day_end:
            raise ValueError(
                f"business day must start before it ends "
                f"({self.day_start.isoformat()} >= {self.day_end.isoformat()})"
            )
        return self

    @property
    def day_start(self) -> time:
        return time(self.day_start_hour, self.day_start_minute)

    @property
    def day_end(self) -> time:
        return time(self.day_end_hour, self.day_end_minute)


class DurationBounds(BaseModel):
    """Accepted range ``(lower, upper]`` for a duration sample, in minutes."""
    model_config = ConfigDict(frozen=True)

    lower: float = 0.0
    upper: float

    @model_validator(mode="after")
    def validate_range(self) -> "DurationBounds":
        if self.lower >= self.upper:
            raise ValueError("lower bound must be below upper bound")
        return self

    def contains(self, value: Optional[float]) -> bool:
        return value is not None and self.lower < value <= self.upper


class OutlierPolicy(BaseModel):
    """
    Bounds used to reject clock-skew or missing-event artifacts.

    Samples outside the bounds are left out of averages only;
    the tickets still count in every total.
    """
    model_config = ConfigDict(frozen=True)

    travel_minutes: DurationBounds = DurationBounds(lower=0, upper=120)
    onsite_minutes: DurationBounds = DurationBounds(lower=0, upper=480)
    resolution_minutes: DurationBounds = DurationBounds(lower=1, upper=43200)
    first_response_minutes: DurationBounds = DurationBounds(lower=0, upper=1440)


class ReportLimits(BaseModel):
    """Sizes of truncated report sections."""
    model_config = ConfigDict(frozen=True)

    recent_tickets: int = Field(default=20, ge=0)
    top_customers: int = Field(default=10, ge=0)
    executive_trend_days: int = Field(default=7, ge=1)


class SLAConfig(BaseModel):
    """
    SLA Configuration loaded from YAML.

    Single source for the business calendar and the priority allotments,
    shared by every report path.
    """
    model_config = ConfigDict(frozen=True)

    calendar: BusinessCalendarConfig = Field(default_factory=BusinessCalendarConfig)
    allotment_hours: Dict[Priority, float] = Field(
        default_factory=lambda: dict(DEFAULT_ALLOTMENT_HOURS),
        description="SLA allotment in business hours by priority"
    )
    fallback_priority: Priority = Field(
        default=Priority.LOW,
        description="Tier used for tickets without a priority"
    )
    warning_threshold_percent: float = Field(
        default=15.0, ge=0, le=100,
        description="Remaining-allotment percentage at which an open ticket is at risk"
    )
    outlier_bounds: OutlierPolicy = Field(default_factory=OutlierPolicy)
    report_limits: ReportLimits = Field(default_factory=ReportLimits)

    @field_validator("allotment_hours")
    @classmethod
    def validate_allotment_hours(cls, v: Dict[Priority, float]) -> Dict[Priority, float]:
        """Every priority must be mapped to a non-negative allotment."""
        missing = [p.value for p in Priority if p not in v]
        if missing:
            raise ValueError(f"allotment_hours missing priorities: {missing}")
        negative = [p.value for p, hours in v.items() if hours < 0]
        if negative:
            raise ValueError(f"allotment_hours must be >= 0: {negative}")
        return v


# ========== Calculators ==========

class BusinessCalendar:
    """
    Business-hours arithmetic over a working calendar.

    Aware instants are converted into the calendar timezone. Naive instants
    are read as calendar-local wall time and results stay naive.
    """

    def __init__(self, config: Optional[BusinessCalendarConfig] = None):
        self._config = config or BusinessCalendarConfig()
        self._tz = ZoneInfo(self._config.timezone)
        self._working_days = frozenset(int(d) for d in self._config.working_days)

    @property
    def config(self) -> BusinessCalendarConfig:
        return self._config

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def localize(self, instant: datetime) -> datetime:
        """Express an aware instant in calendar time; naive passes through."""
        if instant.tzinfo is None:
            return instant
        return instant.astimezone(self._tz)

    def align(self, instant: datetime, reference: datetime) -> datetime:
        """
        Match ``instant``'s timezone awareness to ``reference``.

        A naive instant next to an aware reference is read as calendar-local
        wall time; an aware instant next to a naive reference becomes naive
        calendar-local wall time.
        """
        if (instant.tzinfo is None) == (reference.tzinfo is None):
            return instant
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self._tz)
        return instant.astimezone(self._tz).replace(tzinfo=None)

    def is_working_day(self, day: date) -> bool:
        return day.weekday() in self._working_days

    def window_for(self, day: date, aware: bool = True) -> Tuple[datetime, datetime]:
        """Active window ``[start, end)`` of a calendar day."""
        tzinfo = self._tz if aware else None
        return (
            datetime.combine(day, self._config.day_start, tzinfo=tzinfo),
            datetime.combine(day, self._config.day_end, tzinfo=tzinfo),
        )

    def is_within_window(self, instant: datetime) -> bool:
        local = self.localize(instant)
        if not self.is_working_day(local.date()):
            return False
        window_start, window_end = self.window_for(local.date(), local.tzinfo is not None)
        return window_start <= local < window_end

    def next_window_start(self, instant: datetime) -> datetime:
        """
        Roll an instant forward to where the SLA clock starts running.

        Instants inside a window are returned unchanged. Before the window on
        a working day rolls to that day's start, otherwise to the next
        working day's start.
        """
        local = self.localize(instant)
        if self.is_within_window(local):
            return local
        aware = local.tzinfo is not None
        day = local.date()
        if self.is_working_day(day):
            window_start, _ = self.window_for(day, aware)
            if local < window_start:
                return window_start
        day += timedelta(days=1)
        while not self.is_working_day(day):
            day += timedelta(days=1)
        return self.window_for(day, aware)[0]

    def business_hours_between(self, start: datetime, end: datetime) -> float:
        """
        Hours of ``[start, end]`` that fall inside working windows.

        Returns 0 when ``end <= start``. Unrounded.
        """
        end = self.align(end, start)
        if end <= start:
            return 0.0
        start = self.localize(start)
        end = self.localize(end)
        aware = start.tzinfo is not None

        total = 0.0
        day = start.date()
        last_day = end.date()
        while day <= last_day:
            if self.is_working_day(day):
                window_start, window_end = self.window_for(day, aware)
                period_start = max(start, window_start)
                period_end = min(end, window_end)
                if period_end > period_start:
                    total += elapsed_hours(period_start, period_end)
            day += timedelta(days=1)
        return total


class SLAClock:
    """
    Priority-based SLA clock on top of a business calendar.

    The allotment table is validated here so an unmapped priority fails at
    startup rather than during a report.
    """

    def __init__(
        self,
        calendar: BusinessCalendar,
        allotment_hours: Mapping[Priority, float],
        fallback_priority: Priority = Priority.LOW,
        warning_threshold_percent: float = 15.0,
    ):
        table: Dict[Priority, float] = {}
        for key, hours in allotment_hours.items():
            try:
                priority = Priority(key)
            except ValueError:
                raise ConfigurationException(
                    f"Unknown priority '{key}' in allotment table",
                    {"priority": str(key)}
                ) from None
            if hours is None or hours < 0:
                raise ConfigurationException(
                    f"Allotment for {priority.value} must be >= 0",
                    {"priority": priority.value, "hours": hours}
                )
            table[priority] = float(hours)

        missing = [p.value for p in Priority if p not in table]
        if missing:
            raise ConfigurationException(
                "Allotment table does not map every priority",
                {"missing": missing}
            )

        self._calendar = calendar
        self._allotments = MappingProxyType(table)
        self._fallback_priority = Priority(fallback_priority)
        self._warning_threshold = warning_threshold_percent

    @classmethod
    def from_config(cls, config: SLAConfig) -> "SLAClock":
        return cls(
            BusinessCalendar(config.calendar),
            config.allotment_hours,
            fallback_priority=config.fallback_priority,
            warning_threshold_percent=config.warning_threshold_percent,
        )

    @property
    def calendar(self) -> BusinessCalendar:
        return self._calendar

    @property
    def allotments(self) -> Mapping[Priority, float]:
        return self._allotments

    @property
    def fallback_priority(self) -> Priority:
        return self._fallback_priority

    def effective_priority(self, priority: Optional[Priority]) -> Priority:
        """Tickets without a priority are held to the fallback tier."""
        return self._fallback_priority if priority is None else priority

    def allotted_hours(self, priority: Optional[Priority]) -> float:
        return self._allotments[self.effective_priority(priority)]

    def deadline(self, created_at: datetime, priority: Optional[Priority]) -> datetime:
        """
        Instant at which the priority's allotment is used up.

        Counting starts at the rolled-forward window start and only runs
        inside working windows.
        """
        remaining = self.allotted_hours(priority)
        cursor = self._calendar.next_window_start(created_at)
        aware = cursor.tzinfo is not None

        while True:
            day = cursor.date()
            if self._calendar.is_working_day(day):
                window_start, window_end = self._calendar.window_for(day, aware)
                begin = max(cursor, window_start)
                available = max(0.0, elapsed_hours(begin, window_end))
                if remaining <= available:
                    return _advance(begin, remaining)
                remaining -= available
            cursor = self._calendar.window_for(day + timedelta(days=1), aware)[0]

    def evaluate(self, ticket: TicketSnapshot, now: datetime) -> SlaOutcome:
        """
        Evaluate a ticket's SLA at ``now``.

        Resolved tickets breach when business hours used exceed the allotment.
        Open tickets breach as soon as ``now`` passes the deadline. A ``now``
        of the other timezone awareness is read in calendar time.
        """
        priority = self.effective_priority(ticket.priority)
        if ticket.priority is None:
            logger.debug(
                "Ticket without priority held to fallback tier",
                extra={"ticket_id": ticket.id, "fallback_priority": priority.value}
            )
        allotted = self._allotments[priority]
        deadline = self.deadline(ticket.created_at, priority)
        now = self._calendar.align(now, ticket.created_at)

        if ticket.is_terminal:
            used = self._calendar.business_hours_between(ticket.created_at, ticket.resolved_at)
            is_breached = used > allotted
        else:
            used = self._calendar.business_hours_between(ticket.created_at, now)
            is_breached = now > deadline

        return SlaOutcome(
            ticket_id=ticket.id,
            priority=priority,
            business_hours_used=used,
            allotted_hours=allotted,
            deadline=deadline,
            is_breached=is_breached,
            is_terminal=ticket.is_terminal,
            state=self._classify(ticket.is_terminal, is_breached, used, allotted),
        )

    def _classify(
        self,
        is_terminal: bool,
        is_breached: bool,
        used: float,
        allotted: float,
    ) -> SLAState:
        if is_breached:
            return SLAState.BREACHED
        if is_terminal:
            return SLAState.MET
        remaining_percent = ((allotted - used) / allotted * 100) if allotted > 0 else 0.0
        if remaining_percent <= self._warning_threshold:
            return SLAState.AT_RISK
        return SLAState.ON_TRACK
