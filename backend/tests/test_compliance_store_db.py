"""Tests for DatabaseComplianceStore."""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.compliance import ComplianceScoreSnapshot
from app.schemas.base import ComplianceRating, GapSeverity, GapType, ReportType, TrendDirection
from app.services.compliance_gaps import ComplianceGap
from app.services.compliance_scoring import ComplianceScore, ScoreTrend
from app.services.compliance_store_db import DatabaseComplianceStore
from app.services.inspection_report import synthesize_report


def _score(overall: int = 88) -> ComplianceScore:
    return ComplianceScore(
        overall_score=overall,
        safe_score=90,
        effective_score=85,
        caring_score=80,
        responsive_score=92,
        well_led_score=93,
        daily_notes_coverage=95,
        care_plan_coverage=90,
        assessment_coverage=75,
        incident_documentation_coverage=100,
        risk_assessment_coverage=80,
        overdue_documentation_count=1,
        missing_signatures_count=2,
        incomplete_care_plans_count=0,
        outstanding_incidents_count=3,
    )


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> DatabaseComplianceStore:
    """Store over an empty SQLite database."""
    return DatabaseComplianceStore(session_factory)


class TestScoreSnapshots:
    """Tests for score snapshot persistence."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, store: DatabaseComplianceStore, now: datetime) -> None:
        """Test a saved snapshot loads back with every field intact."""
        trend = ScoreTrend(direction=TrendDirection.IMPROVING, previous_score=84, score_change=4)
        saved = await store.save_score("F1", _score(), trend, now, {"resident_count": 12})

        latest = await store.latest_score("F1")

        assert latest is not None
        assert latest.snapshot_id == saved.snapshot_id
        assert latest.score == _score()
        assert latest.trend == trend
        assert latest.calculated_at == now
        assert latest.metadata == {"resident_count": 12}

    @pytest.mark.asyncio
    async def test_history_newest_first(self, store: DatabaseComplianceStore, now: datetime) -> None:
        """Test history is ordered newest first and limited."""
        new = ScoreTrend(direction=TrendDirection.NEW)
        for days_ago, overall in ((2, 80), (1, 85), (0, 90)):
            await store.save_score("F1", _score(overall), new, now - timedelta(days=days_ago))
        await store.save_score("F2", _score(50), new, now)

        history = await store.score_history("F1")
        assert [s.score.overall_score for s in history] == [90, 85, 80]
        assert len(await store.score_history("F1", limit=2)) == 2

    @pytest.mark.asyncio
    async def test_append_only(
        self,
        store: DatabaseComplianceStore,
        session_factory: async_sessionmaker[AsyncSession],
        now: datetime,
    ) -> None:
        """Test two snapshots at the same time are both kept."""
        new = ScoreTrend(direction=TrendDirection.NEW)
        await store.save_score("F1", _score(), new, now)
        await store.save_score("F1", _score(), new, now)

        async with session_factory() as session:
            count = (await session.execute(select(func.count()).select_from(ComplianceScoreSnapshot))).scalar_one()
        assert count == 2

    @pytest.mark.asyncio
    async def test_no_history(self, store: DatabaseComplianceStore) -> None:
        """Test a facility without snapshots."""
        assert await store.latest_score("F1") is None
        assert await store.score_history("F1") == []


class TestInspectionReports:
    """Tests for inspection report persistence."""

    @pytest.mark.asyncio
    async def test_save_and_get_report(self, store: DatabaseComplianceStore, now: datetime) -> None:
        """Test a saved report is assigned an ID and loads back equal."""
        gap = ComplianceGap(
            type=GapType.UNSIGNED_DOCUMENT,
            severity=GapSeverity.HIGH,
            description="Daily note from 2026-03-01 is unsigned",
            recommended_action="Review and approve the documentation",
            resident_id="R1",
            days_overdue=12,
        )
        report = synthesize_report(
            facility_id="F1",
            score=_score(),
            gaps=[gap],
            report_type=ReportType.PRE_INSPECTION,
            date_range_start=date(2026, 2, 1),
            date_range_end=date(2026, 2, 28),
            generated_at=now,
            resident_ids=["R1"],
            generated_by="manager-1",
            metadata={"score_snapshot_id": "abc"},
        )

        saved = await store.save_report(report)
        loaded = await store.get_report(saved.report_id)

        assert saved.report_id is not None
        assert loaded == saved
        assert loaded.compliance_rating == ComplianceRating.GOOD
        assert loaded.findings.high_priority_gaps == 1

    @pytest.mark.asyncio
    async def test_unknown_report(self, store: DatabaseComplianceStore) -> None:
        """Test unknown and malformed IDs return None."""
        assert await store.get_report("2b0a5a0e-4b1e-4a57-9d1c-2a8a1d3f0c11") is None
        assert await store.get_report("not-a-uuid") is None
