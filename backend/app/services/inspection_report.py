"""Inspection report synthesis.

Combines one ComplianceScore snapshot with a gap list into an
inspection-ready report. Nothing is recomputed here: strengths,
improvement areas and the rating band are threshold rules over the
score, and the findings are counts over the gaps.
"""

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any

from app.core.errors import InvalidInput
from app.schemas.base import ComplianceRating, GapSeverity, ReportType
from app.services.compliance_gaps import ComplianceGap
from app.services.compliance_scoring import ComplianceScore

# (predicate, text) pairs, evaluated independently and in order
STRENGTH_RULES: tuple[tuple[Callable[[ComplianceScore], bool], str], ...] = (
    (lambda s: s.overall_score >= 90, "Excellent overall compliance score"),
    (lambda s: s.daily_notes_coverage >= 95, "Comprehensive daily documentation"),
    (lambda s: s.care_plan_coverage >= 90, "Strong care plan coverage"),
    (lambda s: s.incident_documentation_coverage >= 95, "Excellent incident management"),
)

IMPROVEMENT_RULES: tuple[tuple[Callable[[ComplianceScore], bool], str], ...] = (
    (lambda s: s.overall_score < 80, "Overall compliance score needs improvement"),
    (lambda s: s.daily_notes_coverage < 85, "Daily note coverage is below target"),
    (lambda s: s.care_plan_coverage < 85, "Care plan coverage requires attention"),
    (lambda s: s.overdue_documentation_count > 5, "Significant backlog of overdue documentation"),
)

# Lower bound of each band, highest first
RATING_BANDS: tuple[tuple[int, ComplianceRating], ...] = (
    (95, ComplianceRating.OUTSTANDING),
    (85, ComplianceRating.GOOD),
    (70, ComplianceRating.REQUIRES_IMPROVEMENT),
)


@dataclass(frozen=True)
class ReportFindings:
    """Gap counts captured at report generation time."""

    identified_gaps: int
    critical_gaps: int
    high_priority_gaps: int


@dataclass(frozen=True)
class InspectionReport:
    """An immutable inspection report."""

    facility_id: str
    report_name: str
    report_type: ReportType
    date_range_start: date
    date_range_end: date
    compliance_score: ComplianceScore
    findings: ReportFindings
    areas_of_strength: tuple[str, ...]
    areas_for_improvement: tuple[str, ...]
    compliance_rating: ComplianceRating
    report_summary: str
    record_count: int
    generated_at: datetime
    resident_ids: tuple[str, ...] = ()
    generated_by: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    report_id: str | None = None

    @property
    def overall_score(self) -> int:
        return self.compliance_score.overall_score

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["report_type"] = self.report_type.value
        data["compliance_rating"] = self.compliance_rating.value
        data["date_range_start"] = self.date_range_start.isoformat()
        data["date_range_end"] = self.date_range_end.isoformat()
        data["generated_at"] = self.generated_at.isoformat()
        data["areas_of_strength"] = list(self.areas_of_strength)
        data["areas_for_improvement"] = list(self.areas_for_improvement)
        data["resident_ids"] = list(self.resident_ids)
        return data


def areas_of_strength(score: ComplianceScore) -> tuple[str, ...]:
    return tuple(text for rule, text in STRENGTH_RULES if rule(score))


def areas_for_improvement(score: ComplianceScore) -> tuple[str, ...]:
    return tuple(text for rule, text in IMPROVEMENT_RULES if rule(score))


def compliance_rating(overall_score: int) -> ComplianceRating:
    """Map an overall score to its inspection rating band."""
    for lower_bound, rating in RATING_BANDS:
        if overall_score >= lower_bound:
            return rating
    return ComplianceRating.INADEQUATE


def summarize_findings(gaps: Sequence[ComplianceGap]) -> ReportFindings:
    return ReportFindings(
        identified_gaps=len(gaps),
        critical_gaps=sum(1 for g in gaps if g.severity == GapSeverity.CRITICAL),
        high_priority_gaps=sum(1 for g in gaps if g.severity == GapSeverity.HIGH),
    )


def synthesize_report(
    *,
    facility_id: str,
    score: ComplianceScore,
    gaps: Sequence[ComplianceGap],
    report_type: ReportType | str,
    date_range_start: date,
    date_range_end: date,
    generated_at: datetime,
    resident_ids: Sequence[str] | None = None,
    generated_by: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> InspectionReport:
    """Build an inspection report from a score snapshot and a gap list.

    Args:
        facility_id: Facility the report covers
        score: Score snapshot, embedded by value
        gaps: Gaps to summarise (already filtered to resident_ids by the caller)
        report_type: One of ReportType
        date_range_start: First day covered by the report
        date_range_end: Last day covered by the report
        generated_at: Generation timestamp
        resident_ids: Residents the report is restricted to, if any
        generated_by: Requesting user
        metadata: Extra context, e.g. a recorded gap-detection failure

    Returns:
        InspectionReport

    Raises:
        InvalidInput: Unknown report type or inverted date range
    """
    report_type = validate_report_request(report_type, date_range_start, date_range_end)

    return InspectionReport(
        facility_id=facility_id,
        report_name=f"CQC Inspection Report - {generated_at.date().isoformat()}",
        report_type=report_type,
        date_range_start=date_range_start,
        date_range_end=date_range_end,
        compliance_score=score,
        findings=summarize_findings(gaps),
        areas_of_strength=areas_of_strength(score),
        areas_for_improvement=areas_for_improvement(score),
        compliance_rating=compliance_rating(score.overall_score),
        report_summary=f"Generated inspection report covering {len(gaps)} compliance areas",
        record_count=len(gaps),
        generated_at=generated_at,
        resident_ids=tuple(resident_ids or ()),
        generated_by=generated_by,
        metadata=dict(metadata or {}),
    )


def validate_report_request(
    report_type: ReportType | str,
    date_range_start: date,
    date_range_end: date,
) -> ReportType:
    """Check report parameters before any scoring work is done.

    Raises:
        InvalidInput: Unknown report type or inverted date range
    """
    try:
        parsed = ReportType(report_type)
    except ValueError as e:
        raise InvalidInput(f"Unknown report type: {report_type!r}", field="report_type") from e
    if date_range_start > date_range_end:
        raise InvalidInput("date_range_start must not be after date_range_end", field="date_range_start")
    return parsed
