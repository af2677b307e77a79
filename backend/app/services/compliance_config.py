"""Thresholds and fallbacks for compliance scoring and gap detection."""

from dataclasses import dataclass

from app.core.config import Settings, settings
from app.core.errors import InvalidInput
from app.schemas.base import AssessmentType


@dataclass(frozen=True)
class ScoringConfig:
    """Immutable scoring configuration.

    Defaults mirror the regulatory expectations the scores are built
    around: one note per resident per day, four assessments per
    resident per period, care plan review every 90 days, drafts signed
    within 2 days.
    """

    period_days: int = 30
    gap_lookback_days: int = 30

    min_daily_notes: int = 20
    required_assessment_types: tuple[str, ...] = (
        AssessmentType.MOBILITY.value,
        AssessmentType.NUTRITION.value,
        AssessmentType.MENTAL_HEALTH.value,
        AssessmentType.RISK.value,
    )
    assessments_per_resident: int = 4
    care_plan_review_days: int = 90
    care_plan_stale_days: int = 180
    unsigned_grace_days: int = 2
    unsigned_escalation_days: int = 7
    unsigned_scan_limit: int = 50

    # Used only when a facility has no recorded interactions
    neutral_sentiment: float = 0.5
    default_response_rate: float = 90.0
    measured_response_rate: float = 92.0

    def __post_init__(self) -> None:
        if self.period_days <= 0:
            raise InvalidInput("period_days must be positive", field="period_days")
        if self.gap_lookback_days <= 0:
            raise InvalidInput("gap_lookback_days must be positive", field="gap_lookback_days")
        if not -1.0 <= self.neutral_sentiment <= 1.0:
            raise InvalidInput("neutral_sentiment must be within [-1, 1]", field="neutral_sentiment")
        for name in ("default_response_rate", "measured_response_rate"):
            if not 0.0 <= getattr(self, name) <= 100.0:
                raise InvalidInput(f"{name} must be within [0, 100]", field=name)

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "ScoringConfig":
        """Build a config from application settings."""
        s = source or settings
        return cls(
            period_days=s.compliance_period_days,
            gap_lookback_days=s.compliance_gap_lookback_days,
            min_daily_notes=s.compliance_min_daily_notes,
            assessments_per_resident=s.compliance_required_assessments_per_resident,
            care_plan_review_days=s.compliance_care_plan_review_days,
            care_plan_stale_days=s.compliance_care_plan_stale_days,
            unsigned_grace_days=s.compliance_unsigned_grace_days,
            unsigned_escalation_days=s.compliance_unsigned_escalation_days,
            unsigned_scan_limit=s.compliance_unsigned_scan_limit,
            neutral_sentiment=s.compliance_neutral_sentiment,
            default_response_rate=s.compliance_default_response_rate,
            measured_response_rate=s.compliance_measured_response_rate,
        )
