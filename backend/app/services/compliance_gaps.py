"""Compliance Gap Detection.

Flags specific, per-resident and facility-wide deficiencies:
1. Missing daily documentation
2. Missing, draft or overdue care plans
3. Assessments not completed in the lookback window
4. Draft documents left unsigned past the grace period

Iteration order is part of the contract. Residents are checked in
ascending resident_id order, each resident's checks run in the order
above, and the facility-wide unsigned-document check runs last. The
combined list is then stable-sorted by severity rank, so gaps of equal
severity keep that order and repeated runs over the same records emit
identical lists.
"""

from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any

from app.schemas.base import CarePlanStatus, GapSeverity, GapType
from app.services.compliance_config import ScoringConfig
from app.services.compliance_records import (
    AssessmentRecord,
    CarePlanRecord,
    DocumentationRecord,
    ResidentRecord,
)

SEVERITY_RANK: dict[GapSeverity, int] = {
    GapSeverity.CRITICAL: 0,
    GapSeverity.HIGH: 1,
    GapSeverity.MEDIUM: 2,
    GapSeverity.LOW: 3,
}

UNKNOWN_RESIDENT = "Unknown"


def severity_rank(gap: "ComplianceGap") -> int:
    return SEVERITY_RANK[gap.severity]


@dataclass(frozen=True)
class ComplianceGap:
    """A single detected compliance deficiency."""

    type: GapType
    severity: GapSeverity
    description: str
    recommended_action: str
    resident_id: str | None = None
    resident_name: str | None = None
    days_overdue: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["severity"] = self.severity.value
        return data


@dataclass(frozen=True)
class GapSummary:
    """Gap counts by severity and type."""

    total: int = 0
    by_severity: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)

    @property
    def critical(self) -> int:
        return self.by_severity.get(GapSeverity.CRITICAL.value, 0)

    @property
    def high(self) -> int:
        return self.by_severity.get(GapSeverity.HIGH.value, 0)


# ============================================================================
# Per-resident checks
# ============================================================================


def check_documentation_volume(
    resident: ResidentRecord,
    resident_name: str,
    notes_in_window: int,
    config: ScoringConfig,
) -> list[ComplianceGap]:
    if notes_in_window >= config.min_daily_notes:
        return []
    return [
        ComplianceGap(
            type=GapType.MISSING_DOCUMENTATION,
            severity=GapSeverity.CRITICAL if notes_in_window == 0 else GapSeverity.HIGH,
            resident_id=resident.resident_id,
            resident_name=resident_name,
            description=(
                f"Only {notes_in_window} daily notes in the last {config.gap_lookback_days} days. "
                f"Expected at least {config.min_daily_notes}."
            ),
            recommended_action="Generate or review daily care notes for this resident",
        )
    ]


def check_care_plan(
    resident: ResidentRecord,
    resident_name: str,
    latest_plan: CarePlanRecord | None,
    now: datetime,
    config: ScoringConfig,
) -> list[ComplianceGap]:
    if latest_plan is None:
        return [
            ComplianceGap(
                type=GapType.INCOMPLETE_CARE_PLAN,
                severity=GapSeverity.CRITICAL,
                resident_id=resident.resident_id,
                resident_name=resident_name,
                description="No care plan on file",
                recommended_action="Create a care plan for this resident",
            )
        ]

    if latest_plan.status == CarePlanStatus.DRAFT:
        return [
            ComplianceGap(
                type=GapType.INCOMPLETE_CARE_PLAN,
                severity=GapSeverity.HIGH,
                resident_id=resident.resident_id,
                resident_name=resident_name,
                description="Care plan is in draft status",
                recommended_action="Complete and approve the care plan",
            )
        ]

    days_since_update = (now - latest_plan.updated_at).days
    if days_since_update <= config.care_plan_review_days:
        return []
    return [
        ComplianceGap(
            type=GapType.OVERDUE_REVIEW,
            severity=GapSeverity.HIGH if days_since_update > config.care_plan_stale_days else GapSeverity.MEDIUM,
            resident_id=resident.resident_id,
            resident_name=resident_name,
            description=f"Care plan last reviewed {days_since_update} days ago",
            recommended_action="Review and update care plan",
            days_overdue=days_since_update - config.care_plan_review_days,
        )
    ]


def check_assessments(
    resident: ResidentRecord,
    resident_name: str,
    completed_types: set[str],
    config: ScoringConfig,
) -> list[ComplianceGap]:
    gaps = []
    for assessment_type in config.required_assessment_types:
        if assessment_type in completed_types:
            continue
        label = assessment_type.replace("_", " ")
        gaps.append(
            ComplianceGap(
                type=GapType.EXPIRED_ASSESSMENT,
                severity=GapSeverity.MEDIUM,
                resident_id=resident.resident_id,
                resident_name=resident_name,
                description=f"{label} assessment not completed in last {config.gap_lookback_days} days",
                recommended_action=f"Complete {label} assessment",
            )
        )
    return gaps


# ============================================================================
# Facility-wide checks
# ============================================================================


def check_unsigned_documents(
    unsigned_documents: Sequence[DocumentationRecord],
    resident_names: dict[str, str],
    now: datetime,
    config: ScoringConfig,
) -> list[ComplianceGap]:
    """Unsigned drafts older than the grace period, oldest first."""
    gaps = []
    today = now.date()
    for doc in unsigned_documents[: config.unsigned_scan_limit]:
        if not doc.is_unsigned_draft:
            continue
        days_old = (today - doc.document_date).days
        if days_old <= config.unsigned_grace_days:
            continue
        gaps.append(
            ComplianceGap(
                type=GapType.UNSIGNED_DOCUMENT,
                severity=GapSeverity.HIGH if days_old > config.unsigned_escalation_days else GapSeverity.MEDIUM,
                resident_id=doc.resident_id,
                resident_name=resident_names.get(doc.resident_id, UNKNOWN_RESIDENT),
                description=f"Daily note from {doc.document_date.isoformat()} is unsigned",
                recommended_action="Review and approve the documentation",
                days_overdue=days_old - config.unsigned_grace_days,
            )
        )
    return gaps


# ============================================================================
# Detector
# ============================================================================


def _latest_plans(care_plans: Iterable[CarePlanRecord]) -> dict[str, CarePlanRecord]:
    latest: dict[str, CarePlanRecord] = {}
    for plan in care_plans:
        current = latest.get(plan.resident_id)
        if current is None or plan.updated_at > current.updated_at:
            latest[plan.resident_id] = plan
    return latest


def detect_compliance_gaps(
    residents: Iterable[ResidentRecord],
    documentation: Iterable[DocumentationRecord],
    care_plans: Iterable[CarePlanRecord],
    assessments: Iterable[AssessmentRecord],
    unsigned_documents: Sequence[DocumentationRecord],
    now: datetime,
    config: ScoringConfig | None = None,
) -> list[ComplianceGap]:
    """Run every gap rule and return the severity-ordered gap list.

    Args:
        residents: Active residents of the facility
        documentation: Documentation records (filtered to the lookback window here)
        care_plans: All care plans of the residents
        assessments: Assessment records (filtered to the lookback window here)
        unsigned_documents: Unsigned drafts, oldest document_date first
        now: Reference time for every age computation
        config: Thresholds; defaults to ScoringConfig()

    Returns:
        Gaps ordered critical, high, medium, low; ties in check order.
    """
    config = config or ScoringConfig()
    window_start = now - timedelta(days=config.gap_lookback_days)

    ordered_residents = sorted(residents, key=lambda r: r.resident_id)
    resident_names = {r.resident_id: r.name or UNKNOWN_RESIDENT for r in ordered_residents}

    notes_per_resident: dict[str, int] = {}
    for doc in documentation:
        if doc.document_date >= window_start.date():
            notes_per_resident[doc.resident_id] = notes_per_resident.get(doc.resident_id, 0) + 1

    completed_per_resident: dict[str, set[str]] = {}
    for assessment in assessments:
        if assessment.completed_at is not None and assessment.completed_at >= window_start:
            completed_per_resident.setdefault(assessment.resident_id, set()).add(assessment.assessment_type)

    latest_plans = _latest_plans(care_plans)

    gaps: list[ComplianceGap] = []
    for resident in ordered_residents:
        name = resident_names[resident.resident_id]
        gaps.extend(
            check_documentation_volume(
                resident, name, notes_per_resident.get(resident.resident_id, 0), config
            )
        )
        gaps.extend(check_care_plan(resident, name, latest_plans.get(resident.resident_id), now, config))
        gaps.extend(
            check_assessments(resident, name, completed_per_resident.get(resident.resident_id, set()), config)
        )

    gaps.extend(check_unsigned_documents(unsigned_documents, resident_names, now, config))

    # sorted() is stable: equal severities keep check order
    return sorted(gaps, key=severity_rank)


def summarize_gaps(gaps: Iterable[ComplianceGap]) -> GapSummary:
    """Count gaps by severity and by type."""
    by_severity: dict[str, int] = {}
    by_type: dict[str, int] = {}
    total = 0
    for gap in gaps:
        total += 1
        by_severity[gap.severity.value] = by_severity.get(gap.severity.value, 0) + 1
        by_type[gap.type.value] = by_type.get(gap.type.value, 0) + 1
    return GapSummary(total=total, by_severity=by_severity, by_type=by_type)
