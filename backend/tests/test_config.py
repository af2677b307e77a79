"""Tests for application settings and scoring configuration."""

import pytest

from app.core.config import Settings
from app.core.errors import InvalidInput
from app.services.compliance_config import ScoringConfig


class TestSettings:
    """Tests for environment-driven settings."""

    def test_compliance_defaults(self) -> None:
        """Test the compliance thresholds default to the regulatory values."""
        s = Settings(_env_file=None)

        assert s.compliance_period_days == 30
        assert s.compliance_min_daily_notes == 20
        assert s.compliance_care_plan_review_days == 90
        assert s.compliance_neutral_sentiment == 0.5

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test thresholds can be overridden from the environment."""
        monkeypatch.setenv("COMPLIANCE_PERIOD_DAYS", "14")
        monkeypatch.setenv("COMPLIANCE_UNSIGNED_GRACE_DAYS", "1")

        s = Settings(_env_file=None)

        assert s.compliance_period_days == 14
        assert s.compliance_unsigned_grace_days == 1


class TestScoringConfig:
    """Tests for ScoringConfig."""

    def test_defaults(self) -> None:
        """Test the default config requires the four assessment types."""
        config = ScoringConfig()

        assert config.required_assessment_types == ("mobility", "nutrition", "mental_health", "risk")
        assert config.assessments_per_resident == 4
        assert config.default_response_rate == 90.0
        assert config.measured_response_rate == 92.0

    def test_from_settings(self) -> None:
        """Test settings values flow into the config."""
        s = Settings(_env_file=None, compliance_period_days=7, compliance_unsigned_scan_limit=10)

        config = ScoringConfig.from_settings(s)

        assert config.period_days == 7
        assert config.unsigned_scan_limit == 10

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("period_days", 0),
            ("gap_lookback_days", -1),
            ("neutral_sentiment", 1.5),
            ("default_response_rate", 101.0),
            ("measured_response_rate", -1.0),
        ],
    )
    def test_rejects_invalid_values(self, field: str, value: float) -> None:
        """Test out-of-range values are rejected with the offending field."""
        with pytest.raises(InvalidInput) as exc_info:
            ScoringConfig(**{field: value})

        assert exc_info.value.field == field
