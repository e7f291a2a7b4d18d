"""
Report DTOs
===========

Pydantic models for the report shapes consumed by the HTTP layer and
the CSV/PDF/Excel renderers.

Values are already computed and rounded for display; renderers only
serialize them.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from slaengine.config import UNKNOWN_LABEL, UNASSIGNED_LABEL


# ========== Lookups ==========

class NameDirectory(BaseModel):
    """Display names for association ids, fetched alongside the snapshot."""
    zones: Dict[str, str] = Field(default_factory=dict)
    customers: Dict[str, str] = Field(default_factory=dict)
    agents: Dict[str, str] = Field(default_factory=dict)
    assets: Dict[str, str] = Field(default_factory=dict)

    @staticmethod
    def _label(names: Dict[str, str], key: object, missing: str = UNKNOWN_LABEL) -> str:
        if key is None:
            return missing
        key = str(key)
        if key in (UNKNOWN_LABEL, UNASSIGNED_LABEL):
            return key
        return names.get(key, UNKNOWN_LABEL)

    def zone_name(self, zone_id: object) -> str:
        return self._label(self.zones, zone_id)

    def customer_name(self, customer_id: object) -> str:
        return self._label(self.customers, customer_id)

    def agent_name(self, agent_id: object) -> str:
        return self._label(self.agents, agent_id, missing=UNASSIGNED_LABEL)

    def asset_name(self, asset_id: object) -> str:
        return self._label(self.assets, asset_id)


# ========== Shared Pieces ==========

class DistributionEntry(BaseModel):
    """One bucket of a distribution, with its display label."""
    key: str
    label: str
    count: int
    percentage: float


class TrendPoint(BaseModel):
    """Daily activity."""
    date: date
    created: int
    resolved: int
    escalated: int = 0


class GroupPerformanceRow(BaseModel):
    """Performance of a zone or an agent."""
    id: str
    name: str
    total_tickets: int
    resolved_tickets: int
    open_tickets: int
    escalated_tickets: int
    resolution_rate: float
    sla_compliance_rate: float
    average_resolution_minutes: float
    average_first_response_minutes: float


# ========== Ticket Summary ==========

class TicketSummaryCounts(BaseModel):
    """Headline figures of the ticket-summary report."""
    total_tickets: int
    open_tickets: int
    in_progress_tickets: int
    resolved_tickets: int
    closed_tickets: int
    cancelled_tickets: int
    critical_tickets: int
    high_priority_tickets: int
    unassigned_tickets: int
    overdue_tickets: int
    escalated_tickets: int

    resolution_rate: float
    escalation_rate: float
    sla_compliance_rate: float

    average_resolution_minutes: float
    average_resolution_hours: float
    average_resolution_days: float
    average_first_response_minutes: float
    average_first_response_hours: float

    tickets_with_rating: int
    average_customer_rating: float

    total_onsite_visits: int
    average_travel_minutes: float
    average_onsite_minutes: float

    total_zones: int
    total_customers: int
    total_assignees: int


class RecentTicket(BaseModel):
    id: str
    title: Optional[str] = None
    status: str
    priority: Optional[str] = None
    created_at: datetime
    customer_name: str
    zone_name: str
    assignee_name: str
    is_escalated: bool
    sla_state: str
    rating: Optional[int] = None


class CustomerPerformanceRow(BaseModel):
    """Machine-health view of one customer."""
    customer_id: str
    customer_name: str
    total_tickets: int
    critical_issues: int
    high_priority_issues: int
    escalated_issues: int
    repeat_issues: int
    average_resolution_minutes: float
    average_resolution_hours: float
    machine_health_score: int
    risk_level: str


class SummaryInsights(BaseModel):
    top_zone: str = "N/A"
    most_active_customer: str = "N/A"
    top_assignee: str = "N/A"
    worst_performing_customer: str = "N/A"
    average_travel_time_formatted: str = "N/A"


class TicketSummaryReport(BaseModel):
    generated_at: datetime
    start_date: date
    end_date: date
    summary: TicketSummaryCounts
    status_distribution: List[DistributionEntry]
    priority_distribution: List[DistributionEntry]
    sla_distribution: List[DistributionEntry]
    zone_distribution: List[DistributionEntry]
    customer_distribution: List[DistributionEntry]
    assignee_distribution: List[DistributionEntry]
    daily_trends: List[TrendPoint]
    recent_tickets: List[RecentTicket]
    customer_performance: List[CustomerPerformanceRow]
    insights: SummaryInsights


# ========== SLA Performance ==========

class SlaTicketRow(BaseModel):
    """Per-ticket SLA figures."""
    ticket_id: str
    title: Optional[str] = None
    priority: str
    status: str
    created_at: datetime
    resolved_at: Optional[datetime] = None
    deadline: datetime
    allotted_hours: float
    business_hours_used: float
    is_breached: bool
    state: str
    customer_name: str
    zone_name: str
    assignee_name: str


class PrioritySlaBreakdown(BaseModel):
    priority: str
    allotted_hours: float
    total: int
    compliant: int
    breached: int
    compliance_rate: float


class SlaPerformanceSummary(BaseModel):
    total_tickets: int
    compliant_tickets: int
    breached_tickets: int
    at_risk_tickets: int
    compliance_rate: float
    average_allotted_hours: float
    average_business_hours_used: float


class SlaPerformanceReport(BaseModel):
    generated_at: datetime
    summary: SlaPerformanceSummary
    priority_breakdown: List[PrioritySlaBreakdown]
    tickets: List[SlaTicketRow]
    breached_tickets: List[SlaTicketRow]


# ========== Zone / Agent / Customer ==========

class OverallStats(BaseModel):
    total_tickets: int
    total_resolved: int
    average_resolution_rate: float


class ZonePerformanceReport(BaseModel):
    generated_at: datetime
    zones: List[GroupPerformanceRow]
    total_zones: int
    overall: OverallStats


class AgentProductivityReport(BaseModel):
    generated_at: datetime
    agents: List[GroupPerformanceRow]
    total_agents: int
    top_performer: Optional[GroupPerformanceRow] = None
    unassigned: Optional[GroupPerformanceRow] = None
    average_resolution_rate: float


class CustomerPerformanceReport(BaseModel):
    generated_at: datetime
    customers: List[CustomerPerformanceRow]
    total_customers: int


# ========== Executive Summary ==========

class ExecutiveHeadline(BaseModel):
    total_tickets: int
    resolved_tickets: int
    open_tickets: int
    resolution_rate: float
    average_resolution_hours: float
    customer_satisfaction: float
    total_customers: int
    active_assets: int


class ExecutiveKpis(BaseModel):
    """KPIs derived from ticket data only."""
    sla_compliance_rate: float
    resolution_rate: float
    escalation_rate: float
    average_customer_rating: float


class ExecutiveSummaryReport(BaseModel):
    generated_at: datetime
    summary: ExecutiveHeadline
    trends: List[TrendPoint]
    kpis: ExecutiveKpis


# ========== Customer Satisfaction ==========

class RatingBucket(BaseModel):
    rating: int
    count: int
    percentage: float


class SatisfactionSummary(BaseModel):
    total_feedbacks: int
    average_rating: float
    positive_feedbacks: int
    negative_feedbacks: int


class CustomerRatingRow(BaseModel):
    customer_id: str
    customer_name: str
    total_feedbacks: int
    average_rating: float


class FeedbackEntry(BaseModel):
    ticket_id: str
    rating: int
    comment: Optional[str] = None
    submitted_at: datetime
    customer_name: str


class CustomerSatisfactionReport(BaseModel):
    generated_at: datetime
    summary: SatisfactionSummary
    rating_distribution: List[RatingBucket]
    customer_ratings: List[CustomerRatingRow]
    recent_feedbacks: List[FeedbackEntry]


# ========== Machine Downtime ==========

class DowntimeTicketRow(BaseModel):
    """Downtime one ticket caused on its machine."""
    ticket_id: str
    title: Optional[str] = None
    asset_id: str
    status: str
    priority: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None
    downtime_minutes: int
    downtime_formatted: str
    customer_name: str
    zone_name: str
    assignee_name: str


class MachineDowntimeRow(BaseModel):
    asset_id: str
    asset_name: str
    customer_name: str
    total_downtime_minutes: int
    total_downtime_hours: float
    downtime_formatted: str
    incidents: int
    open_incidents: int
    resolved_incidents: int


class DowntimeSummary(BaseModel):
    total_machines_with_downtime: int
    total_downtime_hours: float
    average_downtime_minutes_per_machine: float


class MachineDowntimeReport(BaseModel):
    generated_at: datetime
    summary: DowntimeSummary
    machines: List[MachineDowntimeRow]
    tickets: List[DowntimeTicketRow]
