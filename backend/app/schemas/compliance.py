"""Compliance API request and response schemas."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.base import ComplianceRating, GapSeverity, GapType, ReportType, TrendDirection


# ==============================================================================
# Scores
# ==============================================================================


class ComplianceScoreSchema(BaseModel):
    """Domain scores, coverage percentages and outstanding-item counts."""

    overall_score: int = Field(..., ge=0, le=100)
    safe_score: int = Field(..., ge=0, le=100)
    effective_score: int = Field(..., ge=0, le=100)
    caring_score: int = Field(..., ge=0, le=100)
    responsive_score: int = Field(..., ge=0, le=100)
    well_led_score: int = Field(..., ge=0, le=100)

    daily_notes_coverage: int = Field(..., ge=0, le=100)
    care_plan_coverage: int = Field(..., ge=0, le=100)
    assessment_coverage: int = Field(..., ge=0, le=100)
    incident_documentation_coverage: int = Field(..., ge=0, le=100)
    risk_assessment_coverage: int = Field(..., ge=0, le=100)

    overdue_documentation_count: int = Field(..., ge=0)
    missing_signatures_count: int = Field(..., ge=0)
    incomplete_care_plans_count: int = Field(..., ge=0)
    outstanding_incidents_count: int = Field(..., ge=0)


class ScoreTrendSchema(BaseModel):
    """Overall score movement against the previous snapshot."""

    direction: TrendDirection
    previous_score: int | None = None
    score_change: int | None = None


class ComplianceScoreResponse(BaseModel):
    """Response for a freshly computed score."""

    facility_id: str
    calculated_at: datetime
    period_start: datetime
    period_end: datetime
    resident_count: int
    score: ComplianceScoreSchema
    trend: ScoreTrendSchema | None = Field(None, description="None when the snapshot was not stored")
    snapshot_id: str | None = None


class ScoreSnapshotSchema(BaseModel):
    """A stored score snapshot."""

    snapshot_id: str
    calculated_at: datetime
    score: ComplianceScoreSchema
    trend: ScoreTrendSchema


class ScoreHistoryResponse(BaseModel):
    """Stored snapshots for a facility, newest first."""

    facility_id: str
    snapshots: list[ScoreSnapshotSchema]
    total: int


class RecalculateResponse(BaseModel):
    """Response after enqueueing a background recalculation."""

    facility_id: str
    job_id: str
    status: str = "queued"


class JobStatusResponse(BaseModel):
    """Status of a background recalculation job."""

    job_id: str
    status: str
    result: dict[str, Any] | None = None


# ==============================================================================
# Gaps
# ==============================================================================


class ComplianceGapSchema(BaseModel):
    """A single compliance gap."""

    type: GapType
    severity: GapSeverity
    description: str
    recommended_action: str
    resident_id: str | None = None
    resident_name: str | None = None
    days_overdue: int | None = None


class GapListResponse(BaseModel):
    """Gaps for a facility with summary counts."""

    facility_id: str
    gaps: list[ComplianceGapSchema]
    total: int
    by_severity: dict[str, int]
    by_type: dict[str, int]


# ==============================================================================
# Reports
# ==============================================================================


class ReportRequest(BaseModel):
    """Request body for generating an inspection report."""

    report_type: ReportType = Field(default=ReportType.FULL_INSPECTION)
    date_range_start: date
    date_range_end: date
    resident_ids: list[str] | None = Field(None, description="Restrict gaps to these residents")
    generated_by: str | None = None


class ReportFindingsSchema(BaseModel):
    identified_gaps: int
    critical_gaps: int
    high_priority_gaps: int


class InspectionReportResponse(BaseModel):
    """A generated inspection report."""

    report_id: str | None
    facility_id: str
    report_name: str
    report_type: ReportType
    date_range_start: date
    date_range_end: date
    resident_ids: list[str]
    compliance_score: ComplianceScoreSchema
    overall_score: int
    compliance_rating: ComplianceRating
    findings: ReportFindingsSchema
    areas_of_strength: list[str]
    areas_for_improvement: list[str]
    report_summary: str
    record_count: int
    generated_by: str | None = None
    generated_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)
