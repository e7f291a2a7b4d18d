"""
Report Assembler
================

Composes the SLA clock and the metrics primitives into the named report
shapes (ticket summary, SLA performance, zone performance, agent
productivity, customer performance, executive summary, customer
satisfaction, machine downtime).

Every report evaluates the snapshot once and then only groups and counts.
Calendar, allotments and outlier bounds come from the single SLAConfig.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional, Sequence

from slaengine.config import (
    Priority, RateKind, SLAState, TicketStatus, UNASSIGNED_LABEL
)
from slaengine.metrics import (
    AggregateBucket, average, distribution, group_by, rate, top_n, trend
)
from slaengine.shared.infrastructure.logging import (
    ContextLogger, get_context_logger, log_latency
)
from slaengine.sla.application import SLAService
from slaengine.sla.domain import (
    OutlierPolicy, ReportLimits, SLAClock, SLAConfig, SlaOutcome, TicketSnapshot,
    minutes_between,
)
from slaengine.reports.application.dto import (
    AgentProductivityReport,
    CustomerPerformanceReport,
    CustomerPerformanceRow,
    CustomerRatingRow,
    CustomerSatisfactionReport,
    DistributionEntry,
    DowntimeSummary,
    DowntimeTicketRow,
    ExecutiveHeadline,
    ExecutiveKpis,
    ExecutiveSummaryReport,
    FeedbackEntry,
    GroupPerformanceRow,
    MachineDowntimeReport,
    MachineDowntimeRow,
    NameDirectory,
    OverallStats,
    PrioritySlaBreakdown,
    RatingBucket,
    RecentTicket,
    SatisfactionSummary,
    SlaPerformanceReport,
    SlaPerformanceSummary,
    SlaTicketRow,
    SummaryInsights,
    TicketSummaryCounts,
    TicketSummaryReport,
    TrendPoint,
    ZonePerformanceReport,
)


@dataclass(frozen=True)
class EvaluatedTicket:
    """A snapshot paired with its SLA outcome for one report run."""
    ticket: TicketSnapshot
    outcome: SlaOutcome

    @property
    def id(self) -> str:
        return self.ticket.id


def _is_resolved(ticket: TicketSnapshot) -> bool:
    return ticket.has_terminal_status


def _is_compliant(row: EvaluatedTicket) -> bool:
    return not row.outcome.is_breached


def _count(records: Iterable, predicate: Callable) -> int:
    return sum(1 for record in records if predicate(record))


def _distinct(values: Iterable) -> int:
    return len({v for v in values if v is not None})


def machine_health_score(issues: int, total_tickets: int) -> int:
    """Customer machine health: 100 minus 5 per issue and 2 per ticket, floored at 0."""
    return max(0, 100 - issues * 5 - total_tickets * 2)


def risk_level(score: int) -> str:
    if score < 50:
        return "HIGH"
    if score < 75:
        return "MEDIUM"
    return "LOW"


def _feedback_time(ticket: TicketSnapshot) -> datetime:
    return ticket.rated_at or ticket.resolution_timestamp() or ticket.created_at


def _request_logger(correlation_id: Optional[str]) -> ContextLogger:
    return get_context_logger(__name__, correlation_id)


def format_minutes(minutes: float, empty: str = "N/A") -> str:
    """``95.4`` -> ``"1h 35m"``; zero or less is ``empty``."""
    if minutes <= 0:
        return empty
    whole = int(round(minutes))
    return f"{whole // 60}h {whole % 60}m"


class ReportAssembler:
    """
    Builds report models from a ticket snapshot.

    Stateless apart from the injected clock and policies; safe to share
    between concurrent requests.
    """

    def __init__(
        self,
        clock: SLAClock,
        outlier_policy: Optional[OutlierPolicy] = None,
        limits: Optional[ReportLimits] = None,
    ):
        self._clock = clock
        self._outliers = outlier_policy or OutlierPolicy()
        self._limits = limits or ReportLimits()

    @classmethod
    def from_config(cls, config: SLAConfig) -> "ReportAssembler":
        return cls(SLAClock.from_config(config), config.outlier_bounds, config.report_limits)

    @classmethod
    def from_service(cls, service: SLAService) -> "ReportAssembler":
        return cls(service.clock, service.config.outlier_bounds, service.config.report_limits)

    # ========== Reports ==========

    def ticket_summary(
        self,
        tickets: Sequence[TicketSnapshot],
        start_date: date,
        end_date: date,
        now: datetime,
        directory: Optional[NameDirectory] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> TicketSummaryReport:
        """Counts, rates, averages, distributions and daily trends."""
        directory = directory or NameDirectory()
        with log_latency(_request_logger(correlation_id), "ticket_summary", tickets=len(tickets)):
            rows = self.evaluate(tickets, now)
            snapshot = [row.ticket for row in rows]

            zone_buckets = distribution(snapshot, lambda t: t.zone_id)
            customer_buckets = distribution(snapshot, lambda t: t.customer_id)
            assignee_buckets = distribution(
                snapshot, lambda t: t.assigned_to_id, unknown_label=UNASSIGNED_LABEL
            )
            customers = self._customer_rows(snapshot, directory)
            travel_minutes = self._average_travel(snapshot)

            summary = TicketSummaryCounts(
                total_tickets=len(snapshot),
                open_tickets=_count(snapshot, lambda t: t.is_open),
                in_progress_tickets=_count(snapshot, lambda t: t.is_in_progress),
                resolved_tickets=_count(snapshot, _is_resolved),
                closed_tickets=_count(snapshot, lambda t: t.status == TicketStatus.CLOSED),
                cancelled_tickets=_count(snapshot, lambda t: t.status == TicketStatus.CANCELLED),
                critical_tickets=_count(snapshot, lambda t: t.priority == Priority.CRITICAL),
                high_priority_tickets=_count(snapshot, lambda t: t.priority == Priority.HIGH),
                unassigned_tickets=_count(snapshot, lambda t: t.assigned_to_id is None),
                overdue_tickets=_count(
                    rows, lambda r: not r.outcome.is_terminal and r.outcome.is_breached
                ),
                escalated_tickets=_count(snapshot, lambda t: t.is_escalated),
                resolution_rate=round(rate(_is_resolved, snapshot, kind=RateKind.INCIDENCE), 2),
                escalation_rate=round(
                    rate(lambda t: t.is_escalated, snapshot, kind=RateKind.INCIDENCE), 2
                ),
                sla_compliance_rate=round(rate(_is_compliant, rows, kind=RateKind.COMPLIANCE), 2),
                **self._resolution_figures(snapshot),
                **self._first_response_figures(snapshot),
                tickets_with_rating=_count(snapshot, lambda t: t.rating is not None),
                average_customer_rating=round(average(snapshot, lambda t: t.rating), 2),
                total_onsite_visits=_count(snapshot, lambda t: t.had_onsite_visit),
                average_travel_minutes=round(travel_minutes, 2),
                average_onsite_minutes=round(average(
                    snapshot, lambda t: t.onsite_minutes(), bounds=self._outliers.onsite_minutes
                ), 2),
                total_zones=_distinct(t.zone_id for t in snapshot),
                total_customers=_distinct(t.customer_id for t in snapshot),
                total_assignees=_distinct(t.assigned_to_id for t in snapshot),
            )

            top_assignee = next(
                (directory.agent_name(b.key) for b in assignee_buckets if b.key != UNASSIGNED_LABEL),
                "N/A",
            )
            worst_customer = top_n(
                customers,
                lambda c: -c.machine_health_score,
                1,
                tie_key=lambda c: c.customer_id,
            )
            insights = SummaryInsights(
                top_zone=directory.zone_name(zone_buckets[0].key) if zone_buckets else "N/A",
                most_active_customer=(
                    directory.customer_name(customer_buckets[0].key) if customer_buckets else "N/A"
                ),
                top_assignee=top_assignee,
                worst_performing_customer=worst_customer[0].customer_name if worst_customer else "N/A",
                average_travel_time_formatted=format_minutes(travel_minutes),
            )

            recent = top_n(
                rows,
                lambda r: r.ticket.created_at,
                self._limits.recent_tickets,
                tie_key=lambda r: r.ticket.id,
            )

            return TicketSummaryReport(
                generated_at=now,
                start_date=start_date,
                end_date=end_date,
                summary=summary,
                status_distribution=self._entries(
                    distribution(snapshot, lambda t: t.status), str
                ),
                priority_distribution=self._entries(
                    distribution(snapshot, lambda t: t.priority), str
                ),
                sla_distribution=self._entries(
                    distribution(rows, lambda r: r.outcome.state), str
                ),
                zone_distribution=self._entries(zone_buckets, directory.zone_name),
                customer_distribution=self._entries(
                    customer_buckets[:self._limits.top_customers], directory.customer_name
                ),
                assignee_distribution=self._entries(assignee_buckets, directory.agent_name),
                daily_trends=self._trend_points(snapshot, start_date, end_date),
                recent_tickets=[self._recent_ticket(row, directory) for row in recent],
                customer_performance=customers[:self._limits.top_customers],
                insights=insights,
            )

    def sla_performance(
        self,
        tickets: Sequence[TicketSnapshot],
        now: datetime,
        directory: Optional[NameDirectory] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> SlaPerformanceReport:
        """Business-hours SLA outcome of every ticket, overall and by priority."""
        directory = directory or NameDirectory()
        with log_latency(_request_logger(correlation_id), "sla_performance", tickets=len(tickets)):
            rows = self.evaluate(tickets, now)
            ticket_rows = [self._sla_row(row, directory) for row in rows]

            breakdown = []
            for priority in Priority:
                members = [r for r in rows if r.outcome.priority == priority]
                breached = _count(members, lambda r: r.outcome.is_breached)
                breakdown.append(PrioritySlaBreakdown(
                    priority=priority.value,
                    allotted_hours=self._clock.allotted_hours(priority),
                    total=len(members),
                    compliant=len(members) - breached,
                    breached=breached,
                    compliance_rate=round(
                        rate(_is_compliant, members, kind=RateKind.COMPLIANCE), 2
                    ),
                ))

            breached_total = _count(rows, lambda r: r.outcome.is_breached)
            summary = SlaPerformanceSummary(
                total_tickets=len(rows),
                compliant_tickets=len(rows) - breached_total,
                breached_tickets=breached_total,
                at_risk_tickets=_count(rows, lambda r: r.outcome.state == SLAState.AT_RISK),
                compliance_rate=round(rate(_is_compliant, rows, kind=RateKind.COMPLIANCE), 2),
                average_allotted_hours=round(average(rows, lambda r: r.outcome.allotted_hours), 2),
                average_business_hours_used=round(average(
                    rows,
                    lambda r: r.outcome.business_hours_used,
                    filter_fn=lambda r: r.outcome.is_terminal,
                ), 2),
            )

            return SlaPerformanceReport(
                generated_at=now,
                summary=summary,
                priority_breakdown=breakdown,
                tickets=ticket_rows,
                breached_tickets=[row for row in ticket_rows if row.is_breached],
            )

    def zone_performance(
        self,
        tickets: Sequence[TicketSnapshot],
        now: datetime,
        directory: Optional[NameDirectory] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> ZonePerformanceReport:
        """Per-zone figures ordered by resolution rate."""
        directory = directory or NameDirectory()
        with log_latency(_request_logger(correlation_id), "zone_performance", tickets=len(tickets)):
            rows = self.evaluate(tickets, now)
            groups = group_by(rows, lambda r: r.ticket.zone_id)
            zones = self._ranked_groups(
                self._group_row(key, directory.zone_name(key), members)
                for key, members in groups.items()
            )
            return ZonePerformanceReport(
                generated_at=now,
                zones=zones,
                total_zones=len(zones),
                overall=OverallStats(
                    total_tickets=sum(z.total_tickets for z in zones),
                    total_resolved=sum(z.resolved_tickets for z in zones),
                    average_resolution_rate=round(average(zones, lambda z: z.resolution_rate), 2),
                ),
            )

    def agent_productivity(
        self,
        tickets: Sequence[TicketSnapshot],
        now: datetime,
        directory: Optional[NameDirectory] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> AgentProductivityReport:
        """
        Per-agent figures.

        Unassigned tickets form their own bucket outside the ranking. The top
        performer has the highest resolution rate; equal rates go to the
        lowest agent id.
        """
        directory = directory or NameDirectory()
        with log_latency(_request_logger(correlation_id), "agent_productivity", tickets=len(tickets)):
            groups = group_by(
                self.evaluate(tickets, now),
                lambda r: r.ticket.assigned_to_id,
                unknown_label=UNASSIGNED_LABEL,
            )
            unassigned = groups.pop(UNASSIGNED_LABEL, None)
            agents = self._ranked_groups(
                self._group_row(key, directory.agent_name(key), members)
                for key, members in groups.items()
            )
            return AgentProductivityReport(
                generated_at=now,
                agents=agents,
                total_agents=len(agents),
                top_performer=agents[0] if agents else None,
                unassigned=(
                    self._group_row(UNASSIGNED_LABEL, UNASSIGNED_LABEL, unassigned)
                    if unassigned else None
                ),
                average_resolution_rate=round(average(agents, lambda a: a.resolution_rate), 2),
            )

    def customer_performance(
        self,
        tickets: Sequence[TicketSnapshot],
        now: datetime,
        directory: Optional[NameDirectory] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> CustomerPerformanceReport:
        """Machine-health rows for every customer, busiest first."""
        directory = directory or NameDirectory()
        with log_latency(_request_logger(correlation_id), "customer_performance", tickets=len(tickets)):
            customers = self._customer_rows(list(tickets), directory)
            return CustomerPerformanceReport(
                generated_at=now,
                customers=customers,
                total_customers=len(customers),
            )

    def executive_summary(
        self,
        tickets: Sequence[TicketSnapshot],
        start_date: date,
        end_date: date,
        now: datetime,
        *,
        correlation_id: Optional[str] = None,
    ) -> ExecutiveSummaryReport:
        """Headline figures, the most recent days of trend and data-derived KPIs."""
        with log_latency(_request_logger(correlation_id), "executive_summary", tickets=len(tickets)):
            rows = self.evaluate(tickets, now)
            snapshot = [row.ticket for row in rows]

            resolution_rate = round(rate(_is_resolved, snapshot, kind=RateKind.INCIDENCE), 2)
            average_rating = round(average(snapshot, lambda t: t.rating), 2)
            trend_start = max(
                start_date, end_date - timedelta(days=self._limits.executive_trend_days - 1)
            )

            return ExecutiveSummaryReport(
                generated_at=now,
                summary=ExecutiveHeadline(
                    total_tickets=len(snapshot),
                    resolved_tickets=_count(snapshot, _is_resolved),
                    open_tickets=_count(snapshot, lambda t: t.is_open),
                    resolution_rate=resolution_rate,
                    average_resolution_hours=self._resolution_figures(snapshot)["average_resolution_hours"],
                    customer_satisfaction=round(average_rating, 1),
                    total_customers=_distinct(t.customer_id for t in snapshot),
                    active_assets=_distinct(t.asset_id for t in snapshot),
                ),
                trends=self._trend_points(snapshot, trend_start, end_date),
                kpis=ExecutiveKpis(
                    sla_compliance_rate=round(
                        rate(_is_compliant, rows, kind=RateKind.COMPLIANCE), 2
                    ),
                    resolution_rate=resolution_rate,
                    escalation_rate=round(
                        rate(lambda t: t.is_escalated, snapshot, kind=RateKind.INCIDENCE), 2
                    ),
                    average_customer_rating=average_rating,
                ),
            )

    def customer_satisfaction(
        self,
        tickets: Sequence[TicketSnapshot],
        now: datetime,
        directory: Optional[NameDirectory] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> CustomerSatisfactionReport:
        """
        Ratings left on tickets.

        The distribution always lists ratings 1 to 5. Recent feedback is
        ordered by when it was given: ``rated_at``, else the resolution
        time, else creation.
        """
        directory = directory or NameDirectory()
        with log_latency(_request_logger(correlation_id), "customer_satisfaction", tickets=len(tickets)):
            rated = [t for t in tickets if t.rating is not None]
            buckets = {b.key: b for b in distribution(rated, lambda t: t.rating)}

            customers = [
                CustomerRatingRow(
                    customer_id=str(key),
                    customer_name=directory.customer_name(key),
                    total_feedbacks=len(members),
                    average_rating=round(average(members, lambda t: t.rating), 2),
                )
                for key, members in group_by(rated, lambda t: t.customer_id).items()
            ]
            recent = top_n(
                rated,
                _feedback_time,
                self._limits.recent_tickets,
                tie_key=lambda t: t.id,
            )

            return CustomerSatisfactionReport(
                generated_at=now,
                summary=SatisfactionSummary(
                    total_feedbacks=len(rated),
                    average_rating=round(average(rated, lambda t: t.rating), 2),
                    positive_feedbacks=_count(rated, lambda t: t.rating >= 4),
                    negative_feedbacks=_count(rated, lambda t: t.rating <= 2),
                ),
                rating_distribution=[
                    RatingBucket(
                        rating=score,
                        count=buckets[score].count if score in buckets else 0,
                        percentage=buckets[score].percentage if score in buckets else 0.0,
                    )
                    for score in range(1, 6)
                ],
                customer_ratings=top_n(
                    customers,
                    lambda c: c.total_feedbacks,
                    len(customers),
                    tie_key=lambda c: c.customer_id,
                ),
                recent_feedbacks=[
                    FeedbackEntry(
                        ticket_id=t.id,
                        rating=t.rating,
                        comment=t.feedback,
                        submitted_at=_feedback_time(t),
                        customer_name=directory.customer_name(t.customer_id),
                    )
                    for t in recent
                ],
            )

    def machine_downtime(
        self,
        tickets: Sequence[TicketSnapshot],
        now: datetime,
        directory: Optional[NameDirectory] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> MachineDowntimeReport:
        """
        Wall-clock downtime per machine.

        Open tickets count from creation until ``now``; resolved and closed
        tickets until their terminal timestamp. Cancelled tickets are left
        out. Machines are ranked by total downtime.
        """
        directory = directory or NameDirectory()
        with log_latency(_request_logger(correlation_id), "machine_downtime", tickets=len(tickets)):
            affected = [t for t in tickets if t.is_open or t.has_terminal_status]

            ticket_rows: List[DowntimeTicketRow] = []
            machines: List[MachineDowntimeRow] = []
            for key, members in group_by(affected, lambda t: t.asset_id).items():
                rows = [self._downtime_row(str(key), t, now, directory) for t in members]
                ticket_rows.extend(rows)
                total = sum(r.downtime_minutes for r in rows)
                owner = min(members, key=lambda t: t.id)
                machines.append(MachineDowntimeRow(
                    asset_id=str(key),
                    asset_name=directory.asset_name(key),
                    customer_name=directory.customer_name(owner.customer_id),
                    total_downtime_minutes=total,
                    total_downtime_hours=round(total / 60, 2),
                    downtime_formatted=format_minutes(total, empty="0h 0m"),
                    incidents=len(members),
                    open_incidents=_count(members, lambda t: t.is_open),
                    resolved_incidents=_count(members, _is_resolved),
                ))

            machines = top_n(
                machines,
                lambda m: m.total_downtime_minutes,
                len(machines),
                tie_key=lambda m: m.asset_id,
            )
            return MachineDowntimeReport(
                generated_at=now,
                summary=DowntimeSummary(
                    total_machines_with_downtime=len(machines),
                    total_downtime_hours=round(
                        sum(m.total_downtime_minutes for m in machines) / 60, 2
                    ),
                    average_downtime_minutes_per_machine=round(
                        average(machines, lambda m: m.total_downtime_minutes), 2
                    ),
                ),
                machines=machines,
                tickets=top_n(
                    ticket_rows,
                    lambda r: r.downtime_minutes,
                    len(ticket_rows),
                    tie_key=lambda r: r.ticket_id,
                ),
            )

    # ========== Building Blocks ==========

    def evaluate(self, tickets: Iterable[TicketSnapshot], now: datetime) -> List[EvaluatedTicket]:
        return [EvaluatedTicket(ticket, self._clock.evaluate(ticket, now)) for ticket in tickets]

    def _local(self, instant: Optional[datetime]) -> Optional[datetime]:
        return None if instant is None else self._clock.calendar.localize(instant)

    @staticmethod
    def _entries(
        buckets: Sequence[AggregateBucket],
        label_fn: Callable[[object], str],
    ) -> List[DistributionEntry]:
        return [
            DistributionEntry(
                key=str(bucket.key),
                label=label_fn(bucket.key),
                count=bucket.count,
                percentage=bucket.percentage,
            )
            for bucket in buckets
        ]

    def _trend_points(
        self,
        tickets: Sequence[TicketSnapshot],
        start_date: date,
        end_date: date,
    ) -> List[TrendPoint]:
        buckets = trend(
            tickets,
            created_fn=lambda t: self._local(t.created_at),
            resolved_fn=lambda t: (
                self._local(t.resolution_timestamp()) if t.has_terminal_status else None
            ),
            start_date=start_date,
            end_date=end_date,
            extra={
                "escalated": lambda t: self._local(t.escalated_at) if t.is_escalated else None,
            },
        )
        return [
            TrendPoint(
                date=bucket.date,
                created=bucket.created_count,
                resolved=bucket.resolved_count,
                escalated=bucket.extra_counts["escalated"],
            )
            for bucket in buckets
        ]

    def _resolution_figures(self, tickets: Sequence[TicketSnapshot]) -> dict:
        minutes = average(
            tickets,
            lambda t: t.resolution_minutes(),
            filter_fn=_is_resolved,
            bounds=self._outliers.resolution_minutes,
        )
        return {
            "average_resolution_minutes": round(minutes, 2),
            "average_resolution_hours": round(minutes / 60, 2),
            "average_resolution_days": round(minutes / (60 * 24), 2),
        }

    def _first_response_figures(self, tickets: Sequence[TicketSnapshot]) -> dict:
        minutes = average(
            tickets,
            lambda t: t.first_response_minutes(),
            bounds=self._outliers.first_response_minutes,
        )
        return {
            "average_first_response_minutes": round(minutes, 2),
            "average_first_response_hours": round(minutes / 60, 2),
        }

    def _average_travel(self, tickets: Sequence[TicketSnapshot]) -> float:
        return average(
            tickets,
            lambda t: t.travel_minutes(),
            filter_fn=lambda t: t.had_onsite_visit,
            bounds=self._outliers.travel_minutes,
        )

    def _group_row(
        self,
        key: object,
        name: str,
        members: Sequence[EvaluatedTicket],
    ) -> GroupPerformanceRow:
        snapshot = [m.ticket for m in members]
        return GroupPerformanceRow(
            id=str(key),
            name=name,
            total_tickets=len(snapshot),
            resolved_tickets=_count(snapshot, _is_resolved),
            open_tickets=_count(snapshot, lambda t: t.is_open),
            escalated_tickets=_count(snapshot, lambda t: t.is_escalated),
            resolution_rate=round(rate(_is_resolved, snapshot, kind=RateKind.INCIDENCE), 2),
            sla_compliance_rate=round(rate(_is_compliant, members, kind=RateKind.COMPLIANCE), 2),
            average_resolution_minutes=self._resolution_figures(snapshot)["average_resolution_minutes"],
            average_first_response_minutes=(
                self._first_response_figures(snapshot)["average_first_response_minutes"]
            ),
        )

    @staticmethod
    def _ranked_groups(rows: Iterable[GroupPerformanceRow]) -> List[GroupPerformanceRow]:
        rows = list(rows)
        return top_n(rows, lambda r: r.resolution_rate, len(rows), tie_key=lambda r: r.id)

    def _customer_rows(
        self,
        tickets: Sequence[TicketSnapshot],
        directory: NameDirectory,
    ) -> List[CustomerPerformanceRow]:
        rows = []
        for key, members in group_by(tickets, lambda t: t.customer_id).items():
            critical = _count(members, lambda t: t.priority == Priority.CRITICAL)
            high = _count(members, lambda t: t.priority == Priority.HIGH)
            escalated = _count(members, lambda t: t.is_escalated)
            per_asset = Counter(t.asset_id for t in members if t.asset_id is not None)
            repeat = _count(
                members, lambda t: t.asset_id is not None and per_asset[t.asset_id] > 1
            )
            minutes = self._resolution_figures(members)["average_resolution_minutes"]
            score = machine_health_score(critical + high + escalated + repeat, len(members))
            rows.append(CustomerPerformanceRow(
                customer_id=str(key),
                customer_name=directory.customer_name(key),
                total_tickets=len(members),
                critical_issues=critical,
                high_priority_issues=high,
                escalated_issues=escalated,
                repeat_issues=repeat,
                average_resolution_minutes=minutes,
                average_resolution_hours=round(minutes / 60, 2),
                machine_health_score=score,
                risk_level=risk_level(score),
            ))
        return top_n(rows, lambda c: c.total_tickets, len(rows), tie_key=lambda c: c.customer_id)

    def _sla_row(self, row: EvaluatedTicket, directory: NameDirectory) -> SlaTicketRow:
        ticket, outcome = row.ticket, row.outcome
        return SlaTicketRow(
            ticket_id=ticket.id,
            title=ticket.title,
            priority=outcome.priority.value,
            status=ticket.status.value,
            created_at=ticket.created_at,
            resolved_at=ticket.resolved_at,
            deadline=outcome.deadline,
            allotted_hours=outcome.allotted_hours,
            business_hours_used=round(outcome.business_hours_used, 2),
            is_breached=outcome.is_breached,
            state=outcome.state.value,
            customer_name=directory.customer_name(ticket.customer_id),
            zone_name=directory.zone_name(ticket.zone_id),
            assignee_name=directory.agent_name(ticket.assigned_to_id),
        )

    def _downtime_row(
        self,
        asset_key: str,
        ticket: TicketSnapshot,
        now: datetime,
        directory: NameDirectory,
    ) -> DowntimeTicketRow:
        # Terminal tickets without any terminal timestamp contribute no downtime
        if ticket.has_terminal_status:
            resolved_at = ticket.resolution_timestamp()
            end = resolved_at
        else:
            resolved_at = None
            end = self._clock.calendar.align(now, ticket.created_at)
        minutes = max(0, int(minutes_between(ticket.created_at, end) or 0))
        return DowntimeTicketRow(
            ticket_id=ticket.id,
            title=ticket.title,
            asset_id=asset_key,
            status=ticket.status.value,
            priority=ticket.priority.value if ticket.priority else None,
            created_at=ticket.created_at,
            resolved_at=resolved_at,
            downtime_minutes=minutes,
            downtime_formatted=format_minutes(minutes, empty="0h 0m"),
            customer_name=directory.customer_name(ticket.customer_id),
            zone_name=directory.zone_name(ticket.zone_id),
            assignee_name=directory.agent_name(ticket.assigned_to_id),
        )

    def _recent_ticket(self, row: EvaluatedTicket, directory: NameDirectory) -> RecentTicket:
        ticket = row.ticket
        return RecentTicket(
            id=ticket.id,
            title=ticket.title,
            status=ticket.status.value,
            priority=ticket.priority.value if ticket.priority else None,
            created_at=ticket.created_at,
            customer_name=directory.customer_name(ticket.customer_id),
            zone_name=directory.zone_name(ticket.zone_id),
            assignee_name=directory.agent_name(ticket.assigned_to_id),
            is_escalated=ticket.is_escalated,
            sla_state=row.outcome.state.value,
            rating=ticket.rating,
        )
