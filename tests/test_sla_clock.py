"""
Tests for SLA deadlines and per-ticket outcomes
"""
from datetime import datetime, timezone

import pytest

from slaengine.config import DEFAULT_ALLOTMENT_HOURS, Priority, SLAState, TicketStatus
from slaengine.core import ConfigurationException, ValidationException
from slaengine.sla.application import (
    ISLAConfigProvider, SLAService, business_hours_between, sla_deadline, sla_outcome
)
from slaengine.sla.domain import BusinessCalendarConfig, SLAClock, SLAConfig


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 9, day, hour, minute, tzinfo=timezone.utc)


class TestDeadline:
    @pytest.mark.parametrize("created,priority,expected", [
        (at(15, 10), Priority.CRITICAL, at(15, 14)),
        (at(15, 16), Priority.CRITICAL, at(16, 11, 30)),
        (at(15, 7), Priority.CRITICAL, at(15, 13)),
        (at(19, 16), Priority.HIGH, at(20, 15, 30)),
        (at(14, 10), Priority.CRITICAL, at(15, 13)),
        (at(15, 9), Priority.LOW, at(20, 14, 30)),
        (at(15, 9), Priority.CRITICAL, at(15, 13)),
        (at(20, 20), Priority.CRITICAL, at(22, 13)),
        (at(20, 16), Priority.HIGH, at(22, 15, 30)),
    ])
    def test_deadline(self, clock, created, priority, expected):
        assert clock.deadline(created, priority) == expected

    def test_deadline_consumes_exact_allotment(self, clock, calendar):
        created = at(18, 15, 20)
        for priority in Priority:
            deadline = clock.deadline(created, priority)
            used = calendar.business_hours_between(created, deadline)
            assert used == pytest.approx(DEFAULT_ALLOTMENT_HOURS[priority])

    def test_deadline_grows_with_allotment(self, clock):
        created = at(17, 12)
        deadlines = [clock.deadline(created, p) for p in
                     (Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW)]
        assert deadlines == sorted(deadlines)

    def test_zero_allotment_is_window_start(self, calendar):
        table = dict(DEFAULT_ALLOTMENT_HOURS, CRITICAL=0)
        clock = SLAClock(calendar, table)
        assert clock.deadline(at(15, 18), Priority.CRITICAL) == at(16, 9)

    def test_missing_priority_uses_fallback(self, clock):
        assert clock.deadline(at(15, 9), None) == clock.deadline(at(15, 9), Priority.LOW)

    def test_configured_fallback(self, calendar):
        clock = SLAClock(calendar, DEFAULT_ALLOTMENT_HOURS, fallback_priority=Priority.HIGH)
        assert clock.allotted_hours(None) == 8.0


class TestEvaluate:
    def test_resolved_within_allotment_is_met(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL, status=TicketStatus.RESOLVED,
                             resolved_at=at(15, 13))
        outcome = clock.evaluate(ticket, at(20, 12))
        assert outcome.business_hours_used == pytest.approx(3.0)
        assert outcome.is_breached is False
        assert outcome.state == SLAState.MET

    def test_resolved_exactly_at_allotment_is_met(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL, status=TicketStatus.RESOLVED,
                             resolved_at=at(15, 14))
        assert clock.evaluate(ticket, at(20, 12)).is_breached is False

    def test_resolved_past_allotment_is_breached(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL, status=TicketStatus.RESOLVED,
                             resolved_at=at(15, 15))
        outcome = clock.evaluate(ticket, at(15, 16))
        assert outcome.is_breached is True
        assert outcome.state == SLAState.BREACHED

    def test_resolved_outcome_ignores_now(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.HIGH, status=TicketStatus.CLOSED,
                             resolved_at=at(16, 10))
        first = clock.evaluate(ticket, at(16, 11))
        later = clock.evaluate(ticket, at(29, 11))
        assert first == later

    def test_open_before_deadline_is_on_track(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL)
        outcome = clock.evaluate(ticket, at(15, 12))
        assert outcome.is_breached is False
        assert outcome.is_terminal is False
        assert outcome.remaining_hours == pytest.approx(2.0)
        assert outcome.state == SLAState.ON_TRACK

    def test_open_near_deadline_is_at_risk(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL)
        assert clock.evaluate(ticket, at(15, 13, 40)).state == SLAState.AT_RISK

    def test_open_at_deadline_is_not_breached(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL)
        assert clock.evaluate(ticket, at(15, 14)).is_breached is False

    def test_open_past_deadline_is_breached(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL)
        outcome = clock.evaluate(ticket, at(15, 15))
        assert outcome.is_breached is True
        assert outcome.deadline == at(15, 14)

    def test_open_breach_is_monotonic_in_now(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.HIGH, created_at=at(19, 16))
        checkpoints = [at(19, 17), at(20, 12), at(20, 15, 31), at(21, 10), at(22, 9)]
        flags = [clock.evaluate(ticket, now).is_breached for now in checkpoints]
        assert flags == [False, False, True, True, True]

    def test_terminal_status_without_timestamp_keeps_running(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL, status=TicketStatus.RESOLVED)
        outcome = clock.evaluate(ticket, at(15, 15))
        assert outcome.is_terminal is False
        assert outcome.is_breached is True

    def test_missing_priority_held_to_fallback(self, clock, make_ticket):
        outcome = clock.evaluate(make_ticket(priority=None), at(15, 12))
        assert outcome.priority == Priority.LOW
        assert outcome.allotted_hours == 48.0

    def test_to_dict(self, clock, make_ticket):
        payload = clock.evaluate(make_ticket(priority=Priority.CRITICAL), at(15, 12)).to_dict()
        assert payload["priority"] == "CRITICAL"
        assert payload["business_hours_used"] == 2.0
        assert payload["state"] == "ON_TRACK"

    def test_naive_now_read_in_calendar_time(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL)
        naive = clock.evaluate(ticket, datetime(2025, 9, 15, 15))
        aware = clock.evaluate(ticket, at(15, 15))
        assert naive == aware
        assert naive.is_breached is True

    def test_aware_now_with_naive_ticket(self, clock, make_ticket):
        ticket = make_ticket(priority=Priority.CRITICAL, created_at=datetime(2025, 9, 15, 10))
        outcome = clock.evaluate(ticket, at(15, 12))
        assert outcome.business_hours_used == pytest.approx(2.0)
        assert outcome.deadline == datetime(2025, 9, 15, 14)
        assert outcome.state == SLAState.ON_TRACK


class TestAllotmentTable:
    def test_unmapped_priority_fails_at_construction(self, calendar):
        table = {Priority.CRITICAL: 4, Priority.HIGH: 8, Priority.MEDIUM: 24}
        with pytest.raises(ConfigurationException) as exc_info:
            SLAClock(calendar, table)
        assert exc_info.value.details["missing"] == ["LOW"]

    def test_negative_allotment_fails(self, calendar):
        with pytest.raises(ConfigurationException):
            SLAClock(calendar, dict(DEFAULT_ALLOTMENT_HOURS, LOW=-1))

    def test_unknown_priority_fails(self, calendar):
        with pytest.raises(ConfigurationException):
            SLAClock(calendar, dict(DEFAULT_ALLOTMENT_HOURS, URGENT=2))

    def test_string_keys_accepted(self, calendar):
        clock = SLAClock(calendar, {"CRITICAL": 1, "HIGH": 2, "MEDIUM": 3, "LOW": 4})
        assert clock.allotments[Priority.HIGH] == 2.0


class TestPureOperations:
    def test_business_hours_between_accepts_config(self):
        assert business_hours_between(
            BusinessCalendarConfig(), at(15, 10), at(15, 12)
        ) == pytest.approx(2.0)

    def test_sla_deadline(self):
        assert sla_deadline(
            BusinessCalendarConfig(), DEFAULT_ALLOTMENT_HOURS, at(15, 16), Priority.CRITICAL
        ) == at(16, 11, 30)

    def test_sla_outcome(self, make_ticket):
        outcome = sla_outcome(
            BusinessCalendarConfig(), DEFAULT_ALLOTMENT_HOURS,
            make_ticket(priority=Priority.CRITICAL), at(15, 15),
        )
        assert outcome.is_breached is True


class _StaticProvider(ISLAConfigProvider):
    def __init__(self, config):
        self._config = config

    def get_config(self):
        return self._config


class TestSLAService:
    def test_evaluate_many_keyed_by_ticket_id(self, tickets, now):
        service = SLAService(_StaticProvider(SLAConfig()))
        outcomes = service.evaluate_many(tickets, now)
        assert set(outcomes) == {"1", "2", "3", "4", "5"}
        assert outcomes["1"].state == SLAState.MET
        assert outcomes["2"].state == SLAState.BREACHED
        assert outcomes["3"].is_breached is True
        assert outcomes["5"].priority == Priority.LOW

    def test_evaluate_many_rejects_duplicate_ids(self, make_ticket, now):
        service = SLAService(_StaticProvider(SLAConfig()))
        tickets = [make_ticket(id="7"), make_ticket(id="8"), make_ticket(id="7", priority=Priority.HIGH)]
        with pytest.raises(ValidationException) as exc_info:
            service.evaluate_many(tickets, now)
        assert exc_info.value.details["duplicate_ids"] == ["7"]

    def test_clock_built_from_config(self):
        config = SLAConfig(allotment_hours={"CRITICAL": 2, "HIGH": 4, "MEDIUM": 8, "LOW": 16})
        service = SLAService(_StaticProvider(config))
        assert service.clock.allotted_hours(Priority.MEDIUM) == 8.0
