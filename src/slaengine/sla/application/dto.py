"""
SLA Application DTOs
=====================

Data Transfer Objects for ticket snapshots handed over by the data store.

This is where open status/priority strings become closed enums. Unknown
values are rejected here so they never reach the aggregator.
"""

from datetime import datetime
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from slaengine.config import Priority, TicketStatus, TERMINAL_STATUSES
from slaengine.core import ValidationException
from slaengine.shared.infrastructure.logging import get_logger
from slaengine.sla.domain import StatusChange, TicketSnapshot, terminal_timestamp

logger = get_logger(__name__)

IdType = Union[int, str]

_OPTIONAL_TIMESTAMPS = (
    "resolved_at",
    "escalated_at",
    "rated_at",
    "visit_started_at",
    "visit_reached_at",
    "visit_in_progress_at",
    "visit_resolved_at",
)


def _upper_enum_value(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip().upper()
        return v or None
    return v


def _id_to_str(v: Optional[IdType]) -> Optional[str]:
    return None if v is None else str(v)


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


class StatusChangeDTO(BaseModel):
    """One entry of a ticket's status history."""
    model_config = ConfigDict(populate_by_name=True)

    status: TicketStatus
    changed_at: datetime = Field(..., alias="changedAt")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return _upper_enum_value(v)


class TicketSnapshotDTO(BaseModel):
    """
    DTO representing a ticket row as fetched by the data store.

    Field aliases follow the camelCase names used by the ticket API so raw
    rows can be validated without renaming.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: IdType = Field(..., description="Ticket ID")
    created_at: datetime = Field(..., alias="createdAt")
    status: TicketStatus
    priority: Optional[Priority] = None
    resolved_at: Optional[datetime] = Field(None, alias="resolvedAt")
    is_escalated: bool = Field(False, alias="isEscalated")
    escalated_at: Optional[datetime] = Field(None, alias="escalatedAt")

    zone_id: Optional[IdType] = Field(None, alias="zoneId")
    customer_id: Optional[IdType] = Field(None, alias="customerId")
    assigned_to_id: Optional[IdType] = Field(None, alias="assignedToId")
    asset_id: Optional[IdType] = Field(None, alias="assetId")

    title: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None
    rated_at: Optional[datetime] = Field(None, alias="ratedAt")

    visit_started_at: Optional[datetime] = Field(None, alias="visitStartedAt")
    visit_reached_at: Optional[datetime] = Field(None, alias="visitReachedAt")
    visit_in_progress_at: Optional[datetime] = Field(None, alias="visitInProgressAt")
    visit_resolved_at: Optional[datetime] = Field(None, alias="visitResolvedAt")

    status_history: List[StatusChangeDTO] = Field(default_factory=list, alias="statusHistory")

    @field_validator("status", "priority", mode="before")
    @classmethod
    def normalize_enum(cls, v: Any) -> Any:
        """Accept lower/mixed case and treat blank priority as missing."""
        return _upper_enum_value(v)

    @model_validator(mode="after")
    def validate_timestamps(self) -> "TicketSnapshotDTO":
        """
        Every timestamp must share ``created_at``'s timezone awareness, and
        resolution cannot precede creation.
        """
        aware = _is_aware(self.created_at)
        for name, value in self._timestamps():
            if value is not None and _is_aware(value) != aware:
                raise ValueError(
                    f"{name} must be {'timezone-aware' if aware else 'naive'} like created_at"
                )
        if self.resolved_at is not None and self.resolved_at < self.created_at:
            raise ValueError("resolved_at cannot be before created_at")
        return self

    def _timestamps(self) -> Iterator[Tuple[str, Optional[datetime]]]:
        for name in _OPTIONAL_TIMESTAMPS:
            yield name, getattr(self, name)
        for index, change in enumerate(self.status_history):
            yield f"status_history[{index}].changed_at", change.changed_at

    def effective_resolved_at(self) -> Optional[datetime]:
        """
        Terminal timestamp used by the SLA clock.

        Only RESOLVED/CLOSED rows carry one, chosen by ``terminal_timestamp``;
        with neither ``resolved_at`` nor a terminal history entry the ticket
        stays non-terminal.
        """
        if self.status not in TERMINAL_STATUSES:
            return None
        return terminal_timestamp(self.resolved_at, self.status_history)

    def to_domain(self) -> TicketSnapshot:
        """Convert to domain entity."""
        return TicketSnapshot(
            id=str(self.id),
            created_at=self.created_at,
            status=self.status,
            priority=self.priority,
            resolved_at=self.effective_resolved_at(),
            is_escalated=self.is_escalated,
            escalated_at=self.escalated_at,
            zone_id=_id_to_str(self.zone_id),
            customer_id=_id_to_str(self.customer_id),
            assigned_to_id=_id_to_str(self.assigned_to_id),
            asset_id=_id_to_str(self.asset_id),
            title=self.title,
            rating=self.rating,
            feedback=self.feedback,
            rated_at=self.rated_at,
            visit_started_at=self.visit_started_at,
            visit_reached_at=self.visit_reached_at,
            visit_in_progress_at=self.visit_in_progress_at,
            visit_resolved_at=self.visit_resolved_at,
            status_history=tuple(
                StatusChange(status=h.status, changed_at=h.changed_at)
                for h in self.status_history
            ),
        )


def _reject(index: int, ticket_id: Any, message: str, errors: List[Any]) -> ValidationException:
    logger.warning(
        "Rejected ticket snapshot",
        extra={"index": index, "ticket_id": ticket_id, "error_count": len(errors)}
    )
    return ValidationException(
        f"Invalid ticket snapshot at index {index}: {message}",
        {"index": index, "ticket_id": ticket_id, "errors": errors}
    )


def parse_snapshots(rows: Iterable[Mapping[str, Any]]) -> List[TicketSnapshot]:
    """
    Validate raw ticket rows into domain snapshots.

    A snapshot is one consistent batch: ticket ids are unique and all rows
    are either timezone-aware or naive.

    Raises:
        ValidationException: on the first row carrying an unknown status or
            priority, a duplicate id, a timezone mix, or otherwise malformed data.
    """
    snapshots: List[TicketSnapshot] = []
    seen_ids = set()
    for index, row in enumerate(rows):
        ticket_id = row.get("id") if isinstance(row, Mapping) else None
        try:
            snapshot = TicketSnapshotDTO.model_validate(row).to_domain()
        except ValidationError as e:
            raise _reject(index, ticket_id, "malformed row", e.errors(include_url=False)) from e

        if snapshot.id in seen_ids:
            raise _reject(index, ticket_id, "duplicate ticket id", [f"duplicate id '{snapshot.id}'"])
        if snapshots and _is_aware(snapshot.created_at) != _is_aware(snapshots[0].created_at):
            raise _reject(
                index, ticket_id, "timezone mix",
                ["created_at awareness differs from the first row of the batch"],
            )
        seen_ids.add(snapshot.id)
        snapshots.append(snapshot)
    return snapshots
