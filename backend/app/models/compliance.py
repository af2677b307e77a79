"""SQLAlchemy models for compliance score history and inspection reports.

Both tables are append-only: a new scoring run or report request adds
a row, existing rows are never updated.
"""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, JSONType


class ComplianceScoreSnapshot(Base):
    """One persisted ComplianceScore with its trend against the previous snapshot."""

    __tablename__ = "compliance_score_snapshots"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    safe_score: Mapped[int] = mapped_column(Integer, nullable=False)
    effective_score: Mapped[int] = mapped_column(Integer, nullable=False)
    caring_score: Mapped[int] = mapped_column(Integer, nullable=False)
    responsive_score: Mapped[int] = mapped_column(Integer, nullable=False)
    well_led_score: Mapped[int] = mapped_column(Integer, nullable=False)

    daily_notes_coverage: Mapped[int] = mapped_column(Integer, nullable=False)
    care_plan_coverage: Mapped[int] = mapped_column(Integer, nullable=False)
    assessment_coverage: Mapped[int] = mapped_column(Integer, nullable=False)
    incident_documentation_coverage: Mapped[int] = mapped_column(Integer, nullable=False)
    risk_assessment_coverage: Mapped[int] = mapped_column(Integer, nullable=False)

    overdue_documentation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    missing_signatures_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    incomplete_care_plans_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    outstanding_incidents_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    trend_direction: Mapped[str] = mapped_column(String(16), nullable=False, default="new")
    previous_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_change: Mapped[int | None] = mapped_column(Integer, nullable=True)

    calculation_metadata: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<ComplianceScoreSnapshot(id={self.id}, facility_id={self.facility_id}, overall_score={self.overall_score})>"


class InspectionReportRecord(Base):
    """A generated inspection report."""

    __tablename__ = "inspection_reports"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    report_name: Mapped[str] = mapped_column(String(255), nullable=False)
    report_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    date_range_start: Mapped[date] = mapped_column(Date, nullable=False)
    date_range_end: Mapped[date] = mapped_column(Date, nullable=False)
    resident_ids: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    report_summary: Mapped[str] = mapped_column(Text, nullable=False)
    findings: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    score_snapshot: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    areas_of_strength: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    areas_for_improvement: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    overall_compliance_rating: Mapped[str] = mapped_column(String(32), nullable=False)
    compliance_score: Mapped[int] = mapped_column(Integer, nullable=False)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    generated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    extra_metadata: Mapped[dict] = mapped_column(
        "metadata",  # Column name in database
        JSONType,
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        return f"<InspectionReportRecord(id={self.id}, facility_id={self.facility_id}, report_type={self.report_type})>"
