"""Coverage calculators.

Each calculator turns "expected vs. actual" record counts for one
dimension into a 0-100 percentage. They are pure functions over typed
records; the engine fetches the records and calls them.

Incident documentation is the one asymmetric dimension: a period with
no incidents is fully documented (100), not undefined (0).
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from app.core.errors import InvalidInput
from app.schemas.base import AssessmentType, CarePlanStatus
from app.services.compliance_config import ScoringConfig
from app.services.compliance_records import (
    AssessmentRecord,
    CarePlanRecord,
    DocumentationRecord,
    IncidentRecord,
    InteractionRecord,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    round() would send 87.5 to 88 but 86.5 to 86; scores must not depend
    on the parity of the integer part.
    """
    return int(math.floor(value + 0.5))


def _check_count(value: int, name: str) -> None:
    if value < 0:
        raise InvalidInput(f"{name} must be >= 0, got {value}", field=name)


def coverage_percentage(expected: int, actual: int) -> int:
    """Percentage of expected records that are present, capped at 100.

    Zero expected records means coverage is undefined and scored as 0.
    """
    _check_count(expected, "expected_count")
    _check_count(actual, "actual_count")
    if expected == 0:
        return 0
    return min(100, round_half_up(actual / expected * 100))


def incident_documentation_coverage(incident_count: int, documented_count: int) -> int:
    """Percentage of incidents with a generated report.

    No incidents is trivially fully documented.
    """
    _check_count(incident_count, "incident_count")
    _check_count(documented_count, "documented_count")
    if incident_count == 0:
        return 100
    return min(100, round_half_up(documented_count / incident_count * 100))


# ============================================================================
# Dimension calculators
# ============================================================================


def daily_notes_coverage(
    resident_count: int,
    days_in_period: int,
    documentation: Iterable[DocumentationRecord],
    period_start: date,
) -> int:
    """One note per resident per day."""
    _check_count(resident_count, "resident_count")
    _check_count(days_in_period, "days_in_period")
    actual = sum(1 for doc in documentation if doc.document_date >= period_start)
    return coverage_percentage(resident_count * days_in_period, actual)


def care_plan_coverage(resident_ids: Iterable[str], care_plans: Iterable[CarePlanRecord]) -> int:
    """Residents with at least one active care plan."""
    residents = set(resident_ids)
    covered = {
        plan.resident_id
        for plan in care_plans
        if plan.status == CarePlanStatus.ACTIVE and plan.resident_id in residents
    }
    return coverage_percentage(len(residents), len(covered))


def assessment_coverage(
    resident_ids: Iterable[str],
    assessments: Iterable[AssessmentRecord],
    since: datetime,
    per_resident: int = 4,
) -> int:
    """Distinct (resident, assessment type) completions since `since`."""
    _check_count(per_resident, "assessments_per_resident")
    residents = set(resident_ids)
    completed = {
        (a.resident_id, a.assessment_type)
        for a in assessments
        if a.resident_id in residents and a.completed_at is not None and a.completed_at >= since
    }
    return coverage_percentage(len(residents) * per_resident, len(completed))


def risk_assessment_coverage(
    resident_ids: Iterable[str],
    assessments: Iterable[AssessmentRecord],
    since: datetime,
) -> int:
    """Residents with a completed risk assessment since `since`."""
    residents = set(resident_ids)
    assessed = {
        a.resident_id
        for a in assessments
        if a.assessment_type == AssessmentType.RISK.value
        and a.resident_id in residents
        and a.completed_at is not None
        and a.completed_at >= since
    }
    return coverage_percentage(len(residents), len(assessed))


def incident_coverage(incidents: Iterable[IncidentRecord]) -> int:
    """Incident documentation coverage over incident records."""
    total = 0
    documented = 0
    for incident in incidents:
        total += 1
        if incident.has_generated_report:
            documented += 1
    return incident_documentation_coverage(total, documented)


@dataclass(frozen=True)
class InteractionSummary:
    """Auxiliary interaction signals feeding the Safe, Caring and Responsive domains."""

    concern_rate: float
    avg_sentiment: float
    response_rate: float
    interaction_count: int = 0

    @property
    def measured(self) -> bool:
        return self.interaction_count > 0


def interaction_coverage(
    interactions: Iterable[InteractionRecord],
    config: ScoringConfig | None = None,
) -> InteractionSummary:
    """Concern rate, average sentiment and response rate.

    With no interactions the summary falls back to the neutral values
    from config rather than measured ones. Missing sentiment counts as 0.
    """
    config = config or ScoringConfig()
    records = list(interactions)
    if not records:
        return InteractionSummary(
            concern_rate=0.0,
            avg_sentiment=config.neutral_sentiment,
            response_rate=config.default_response_rate,
        )

    with_concerns = sum(1 for i in records if i.has_concerns)
    total_sentiment = sum(i.sentiment_score or 0.0 for i in records)
    return InteractionSummary(
        concern_rate=with_concerns / len(records) * 100,
        avg_sentiment=total_sentiment / len(records),
        response_rate=config.measured_response_rate,
        interaction_count=len(records),
    )
