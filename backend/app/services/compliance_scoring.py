"""Domain score calculator.

Blends coverage percentages and interaction signals into the five
regulatory domains (Safe, Effective, Caring, Responsive, Well-Led) and
an unweighted overall score. A ComplianceScore is an immutable snapshot:
a new run produces a new value, history is never edited.
"""

from dataclasses import asdict, dataclass
from typing import Any

from app.core.errors import InvalidInput
from app.schemas.base import TrendDirection
from app.services.coverage import InteractionSummary, round_half_up

# Overall score change (in points) that counts as a real movement
TREND_THRESHOLD = 2


@dataclass(frozen=True)
class DomainScores:
    """The five regulatory domain scores and their mean."""

    safe: int
    effective: int
    caring: int
    responsive: int
    well_led: int

    @property
    def overall(self) -> int:
        return round_half_up(
            (self.safe + self.effective + self.caring + self.responsive + self.well_led) / 5
        )


@dataclass(frozen=True)
class ComplianceScore:
    """Scores, coverages and deficiency counts from one scoring run."""

    overall_score: int
    safe_score: int
    effective_score: int
    caring_score: int
    responsive_score: int
    well_led_score: int

    daily_notes_coverage: int
    care_plan_coverage: int
    assessment_coverage: int
    incident_documentation_coverage: int
    risk_assessment_coverage: int

    overdue_documentation_count: int = 0
    missing_signatures_count: int = 0
    incomplete_care_plans_count: int = 0
    outstanding_incidents_count: int = 0

    def __post_init__(self) -> None:
        for name in (
            "overall_score",
            "safe_score",
            "effective_score",
            "caring_score",
            "responsive_score",
            "well_led_score",
            "daily_notes_coverage",
            "care_plan_coverage",
            "assessment_coverage",
            "incident_documentation_coverage",
            "risk_assessment_coverage",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise InvalidInput(f"{name} must be within [0, 100], got {value}", field=name)
        for name in (
            "overdue_documentation_count",
            "missing_signatures_count",
            "incomplete_care_plans_count",
            "outstanding_incidents_count",
        ):
            if getattr(self, name) < 0:
                raise InvalidInput(f"{name} must be >= 0", field=name)

    @classmethod
    def empty(cls) -> "ComplianceScore":
        """Fixed result for a facility with no active residents."""
        return cls(
            overall_score=0,
            safe_score=0,
            effective_score=0,
            caring_score=0,
            responsive_score=0,
            well_led_score=0,
            daily_notes_coverage=0,
            care_plan_coverage=0,
            assessment_coverage=0,
            incident_documentation_coverage=100,
            risk_assessment_coverage=0,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# Domain formulas
# ============================================================================


def calculate_safe_score(incident_documentation: int, concern_rate: float) -> int:
    return round_half_up(incident_documentation * 0.7 + (100 - concern_rate) * 0.3)


def calculate_effective_score(care_plan_coverage: int, assessment_coverage: int) -> int:
    return round_half_up(care_plan_coverage * 0.6 + assessment_coverage * 0.4)


def calculate_caring_score(avg_sentiment: float, daily_notes_coverage: int) -> int:
    # Sentiment is signed [-1, 1]; rescale to a [0, 100] percentage first
    sentiment_percent = (avg_sentiment + 1) * 50
    return round_half_up(sentiment_percent * 0.5 + daily_notes_coverage * 0.5)


def calculate_responsive_score(care_plan_coverage: int, response_rate: float) -> int:
    return round_half_up(care_plan_coverage * 0.5 + response_rate * 0.5)


def calculate_well_led_score(daily_notes_coverage: int, overdue_count: int, total_residents: int) -> int:
    overdue_rate = overdue_count / total_residents * 100 if total_residents > 0 else 0
    return round_half_up(daily_notes_coverage * 0.6 + (100 - min(100, overdue_rate)) * 0.4)


def calculate_domain_scores(
    *,
    daily_notes: int,
    care_plan: int,
    assessment: int,
    incident_documentation: int,
    interactions: InteractionSummary,
    overdue_alert_count: int,
    total_residents: int,
) -> DomainScores:
    """Apply the fixed domain weights to the coverage values."""
    if overdue_alert_count < 0:
        raise InvalidInput("overdue_alert_count must be >= 0", field="overdue_alert_count")
    if total_residents < 0:
        raise InvalidInput("total_residents must be >= 0", field="total_residents")

    return DomainScores(
        safe=calculate_safe_score(incident_documentation, interactions.concern_rate),
        effective=calculate_effective_score(care_plan, assessment),
        caring=calculate_caring_score(interactions.avg_sentiment, daily_notes),
        responsive=calculate_responsive_score(care_plan, interactions.response_rate),
        well_led=calculate_well_led_score(daily_notes, overdue_alert_count, total_residents),
    )


def build_compliance_score(
    *,
    total_residents: int,
    daily_notes: int,
    care_plan: int,
    assessment: int,
    incident_documentation: int,
    risk_assessment: int,
    interactions: InteractionSummary,
    overdue_alert_count: int,
    missing_signatures_count: int,
    incomplete_care_plans_count: int,
    outstanding_incidents_count: int,
) -> ComplianceScore:
    """Assemble a ComplianceScore snapshot.

    Zero residents short-circuits to ComplianceScore.empty() before any
    division happens.
    """
    if total_residents == 0:
        return ComplianceScore.empty()

    domains = calculate_domain_scores(
        daily_notes=daily_notes,
        care_plan=care_plan,
        assessment=assessment,
        incident_documentation=incident_documentation,
        interactions=interactions,
        overdue_alert_count=overdue_alert_count,
        total_residents=total_residents,
    )
    return ComplianceScore(
        overall_score=domains.overall,
        safe_score=domains.safe,
        effective_score=domains.effective,
        caring_score=domains.caring,
        responsive_score=domains.responsive,
        well_led_score=domains.well_led,
        daily_notes_coverage=daily_notes,
        care_plan_coverage=care_plan,
        assessment_coverage=assessment,
        incident_documentation_coverage=incident_documentation,
        risk_assessment_coverage=risk_assessment,
        overdue_documentation_count=overdue_alert_count,
        missing_signatures_count=missing_signatures_count,
        incomplete_care_plans_count=incomplete_care_plans_count,
        outstanding_incidents_count=outstanding_incidents_count,
    )


# ============================================================================
# Trend
# ============================================================================


@dataclass(frozen=True)
class ScoreTrend:
    """Movement of the overall score against the previous snapshot."""

    direction: TrendDirection
    previous_score: int | None = None
    score_change: int | None = None


def compute_trend(current: ComplianceScore, previous_overall: int | None) -> ScoreTrend:
    """Compare a new snapshot with the facility's previous overall score."""
    if previous_overall is None:
        return ScoreTrend(direction=TrendDirection.NEW)

    change = current.overall_score - previous_overall
    if change >= TREND_THRESHOLD:
        direction = TrendDirection.IMPROVING
    elif change <= -TREND_THRESHOLD:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE
    return ScoreTrend(direction=direction, previous_score=previous_overall, score_change=change)
