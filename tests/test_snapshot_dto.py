"""
Tests for snapshot validation at the data-store boundary
"""
from datetime import datetime, timezone

import pytest

from slaengine.config import Priority, TicketStatus
from slaengine.core import ValidationException
from slaengine.sla.application import TicketSnapshotDTO, parse_snapshots
from slaengine.sla.domain import StatusChange, TicketSnapshot


def row(**overrides):
    data = {
        "id": 42,
        "createdAt": "2025-09-15T10:00:00Z",
        "status": "open",
        "priority": "high",
        "zoneId": 7,
        "customerId": "c1",
    }
    data.update(overrides)
    return data


class TestParseSnapshots:
    def test_camel_case_row(self):
        [ticket] = parse_snapshots([row()])
        assert ticket.id == "42"
        assert ticket.status == TicketStatus.OPEN
        assert ticket.priority == Priority.HIGH
        assert ticket.zone_id == "7"
        assert ticket.created_at == datetime(2025, 9, 15, 10, tzinfo=timezone.utc)

    def test_blank_priority_is_missing(self):
        [ticket] = parse_snapshots([row(priority="  ")])
        assert ticket.priority is None

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            parse_snapshots([row(), row(id=43, status="ARCHIVED")])
        assert exc_info.value.details["index"] == 1
        assert exc_info.value.details["ticket_id"] == 43

    def test_unknown_priority_rejected(self):
        with pytest.raises(ValidationException):
            parse_snapshots([row(priority="URGENT")])

    def test_rating_out_of_range_rejected(self):
        with pytest.raises(ValidationException):
            parse_snapshots([row(rating=9)])

    def test_resolution_before_creation_rejected(self):
        with pytest.raises(ValidationException):
            parse_snapshots([row(status="RESOLVED", resolvedAt="2025-09-14T10:00:00Z")])

    def test_mixed_timezone_awareness_rejected(self):
        with pytest.raises(ValidationException):
            parse_snapshots([row(status="RESOLVED", resolvedAt="2025-09-15T12:00:00")])

    def test_naive_history_entry_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            parse_snapshots([row(
                status="CLOSED",
                statusHistory=[{"status": "CLOSED", "changedAt": "2025-09-15T12:00:00"}],
            )])
        [error] = exc_info.value.details["errors"]
        assert "status_history[0].changed_at" in error["msg"]

    @pytest.mark.parametrize("field", ["escalatedAt", "ratedAt", "visitStartedAt"])
    def test_naive_optional_timestamp_rejected(self, field):
        with pytest.raises(ValidationException):
            parse_snapshots([row(**{field: "2025-09-15T12:00:00"})])

    def test_aware_history_on_naive_row_rejected(self):
        with pytest.raises(ValidationException):
            parse_snapshots([row(
                createdAt="2025-09-15T10:00:00",
                statusHistory=[{"status": "ASSIGNED", "changedAt": "2025-09-15T11:00:00Z"}],
            )])

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            parse_snapshots([row(), row(id=43), row(status="CLOSED")])
        assert exc_info.value.details["index"] == 2
        assert exc_info.value.details["ticket_id"] == 42

    def test_batch_mixing_naive_and_aware_rows_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            parse_snapshots([row(), row(id=43, createdAt="2025-09-15T10:00:00")])
        assert exc_info.value.details["index"] == 1

    def test_feedback_fields(self):
        [ticket] = parse_snapshots([row(
            status="RESOLVED", resolvedAt="2025-09-15T12:00:00Z",
            rating=4, feedback="Quick fix", ratedAt="2025-09-15T13:00:00Z",
        )])
        assert ticket.feedback == "Quick fix"
        assert ticket.rated_at == datetime(2025, 9, 15, 13, tzinfo=timezone.utc)

    def test_resolved_at_wins_over_history(self):
        [ticket] = parse_snapshots([row(
            status="CLOSED",
            resolvedAt="2025-09-15T12:00:00Z",
            statusHistory=[{"status": "CLOSED", "changedAt": "2025-09-15T14:00:00Z"}],
        )])
        assert ticket.resolved_at == datetime(2025, 9, 15, 12, tzinfo=timezone.utc)
        assert ticket.resolution_timestamp() == ticket.resolved_at

    def test_resolved_at_dropped_for_non_terminal_status(self):
        [ticket] = parse_snapshots([row(status="REOPENED", resolvedAt="2025-09-15T12:00:00Z")])
        assert ticket.resolved_at is None
        assert ticket.is_terminal is False

    def test_terminal_timestamp_taken_from_history(self):
        [ticket] = parse_snapshots([row(
            status="CLOSED",
            statusHistory=[
                {"status": "in_progress", "changedAt": "2025-09-15T11:00:00Z"},
                {"status": "RESOLVED", "changedAt": "2025-09-15T12:00:00Z"},
                {"status": "CLOSED", "changedAt": "2025-09-15T13:00:00Z"},
            ],
        )])
        assert ticket.resolved_at == datetime(2025, 9, 15, 13, tzinfo=timezone.utc)
        assert ticket.status_history[0] == StatusChange(
            TicketStatus.IN_PROGRESS, datetime(2025, 9, 15, 11, tzinfo=timezone.utc)
        )

    def test_terminal_without_any_timestamp_stays_open_for_the_clock(self):
        [ticket] = parse_snapshots([row(status="RESOLVED")])
        assert ticket.has_terminal_status is True
        assert ticket.is_terminal is False

    def test_snake_case_names_accepted(self):
        dto = TicketSnapshotDTO(id="9", created_at=datetime(2025, 9, 15, 10), status="OPEN")
        assert dto.to_domain().created_at == datetime(2025, 9, 15, 10)

    def test_unknown_fields_ignored(self):
        [ticket] = parse_snapshots([row(description="printer on fire")])
        assert ticket.id == "42"


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 9, 15, hour, minute, tzinfo=timezone.utc)


class TestTicketSnapshot:
    def test_resolution_prefers_resolved_at(self):
        ticket = TicketSnapshot(
            id="1", created_at=_at(9), status=TicketStatus.CLOSED, resolved_at=_at(12),
            status_history=(
                StatusChange(TicketStatus.RESOLVED, _at(11)),
                StatusChange(TicketStatus.CLOSED, _at(14)),
            ),
        )
        assert ticket.resolution_timestamp() == _at(12)
        assert ticket.resolution_minutes() == 180

    def test_resolution_falls_back_to_latest_terminal_history(self):
        ticket = TicketSnapshot(
            id="1", created_at=_at(9), status=TicketStatus.CLOSED,
            status_history=(
                StatusChange(TicketStatus.CLOSED, _at(14)),
                StatusChange(TicketStatus.RESOLVED, _at(11)),
                StatusChange(TicketStatus.IN_PROGRESS, _at(15)),
            ),
        )
        assert ticket.resolution_timestamp() == _at(14)
        assert ticket.resolution_minutes() == 300

    def test_first_response_is_first_change_away_from_open(self):
        ticket = TicketSnapshot(
            id="1", created_at=_at(9), status=TicketStatus.ASSIGNED,
            status_history=(
                StatusChange(TicketStatus.ASSIGNED, _at(9, 40)),
                StatusChange(TicketStatus.OPEN, _at(9, 5)),
            ),
        )
        assert ticket.first_response_minutes() == 40

    def test_visit_durations_fall_back_to_in_progress(self):
        ticket = TicketSnapshot(
            id="1", created_at=_at(9), status=TicketStatus.ONSITE_VISIT_RESOLVED,
            visit_started_at=_at(10), visit_in_progress_at=_at(10, 30),
            visit_resolved_at=_at(11, 30),
        )
        assert ticket.had_onsite_visit
        assert ticket.travel_minutes() == 30
        assert ticket.onsite_minutes() == 60

    def test_no_visit(self):
        ticket = TicketSnapshot(id="1", created_at=_at(9), status=TicketStatus.OPEN)
        assert not ticket.had_onsite_visit
        assert ticket.travel_minutes() is None
        assert ticket.is_open

    def test_cancelled_is_not_open(self):
        ticket = TicketSnapshot(id="1", created_at=_at(9), status=TicketStatus.CANCELLED)
        assert not ticket.is_open
        assert not ticket.has_terminal_status
