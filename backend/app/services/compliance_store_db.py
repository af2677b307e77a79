"""Database-backed compliance store.

Appends score snapshots and inspection reports to their tables.
"""

import dataclasses
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import DataUnavailable
from app.models.compliance import ComplianceScoreSnapshot, InspectionReportRecord
from app.schemas.base import ComplianceRating, ReportType, TrendDirection
from app.services.compliance_scoring import ComplianceScore, ScoreTrend
from app.services.compliance_store import ComplianceStoreInterface, StoredScore
from app.services.inspection_report import InspectionReport, ReportFindings

logger = logging.getLogger(__name__)

SCORE_FIELDS: tuple[str, ...] = tuple(f.name for f in dataclasses.fields(ComplianceScore))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class DatabaseComplianceStore(ComplianceStoreInterface):
    """Compliance store writing to compliance_score_snapshots and inspection_reports.

    Usage:
        store = DatabaseComplianceStore(async_session_maker)
        stored = await store.save_score("F1", score, trend, now)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory producing AsyncSession instances.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Compliance store operation '{operation}' failed: {e}")
            raise DataUnavailable(f"Compliance store operation '{operation}' failed", source=operation) from e

    async def save_score(
        self,
        facility_id: str,
        score: ComplianceScore,
        trend: ScoreTrend,
        calculated_at: datetime,
        metadata: dict[str, Any] | None = None,
    ) -> StoredScore:
        row = ComplianceScoreSnapshot(
            facility_id=facility_id,
            calculated_at=calculated_at,
            trend_direction=trend.direction.value,
            previous_score=trend.previous_score,
            score_change=trend.score_change,
            calculation_metadata=dict(metadata or {}),
            **score.to_dict(),
        )
        async with self._session("save_score") as session:
            session.add(row)
            await session.flush()
            snapshot_id = row.id
            await session.commit()

        return StoredScore(
            snapshot_id=snapshot_id,
            facility_id=facility_id,
            calculated_at=calculated_at,
            score=score,
            trend=trend,
            metadata=dict(metadata or {}),
        )

    async def latest_score(self, facility_id: str) -> StoredScore | None:
        history = await self.score_history(facility_id, limit=1)
        return history[0] if history else None

    async def score_history(self, facility_id: str, limit: int = 30) -> list[StoredScore]:
        stmt = (
            select(ComplianceScoreSnapshot)
            .where(ComplianceScoreSnapshot.facility_id == facility_id)
            .order_by(ComplianceScoreSnapshot.calculated_at.desc())
            .limit(limit)
        )
        async with self._session("score_history") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self._to_stored_score(row) for row in rows]

    async def save_report(self, report: InspectionReport) -> InspectionReport:
        row = InspectionReportRecord(
            facility_id=report.facility_id,
            report_name=report.report_name,
            report_type=report.report_type.value,
            date_range_start=report.date_range_start,
            date_range_end=report.date_range_end,
            resident_ids=list(report.resident_ids),
            report_summary=report.report_summary,
            findings={
                "identified_gaps": report.findings.identified_gaps,
                "critical_gaps": report.findings.critical_gaps,
                "high_priority_gaps": report.findings.high_priority_gaps,
            },
            score_snapshot=report.compliance_score.to_dict(),
            areas_of_strength=list(report.areas_of_strength),
            areas_for_improvement=list(report.areas_for_improvement),
            overall_compliance_rating=report.compliance_rating.value,
            compliance_score=report.overall_score,
            record_count=report.record_count,
            generated_by=report.generated_by,
            generated_at=report.generated_at,
            extra_metadata=dict(report.metadata),
        )
        async with self._session("save_report") as session:
            session.add(row)
            await session.flush()
            report_id = row.id
            await session.commit()

        return dataclasses.replace(report, report_id=report_id)

    async def get_report(self, report_id: str) -> InspectionReport | None:
        try:
            UUID(report_id)
        except ValueError:
            return None

        stmt = select(InspectionReportRecord).where(InspectionReportRecord.id == report_id)
        async with self._session("get_report") as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None

        return InspectionReport(
            report_id=row.id,
            facility_id=row.facility_id,
            report_name=row.report_name,
            report_type=ReportType(row.report_type),
            date_range_start=row.date_range_start,
            date_range_end=row.date_range_end,
            compliance_score=ComplianceScore(**{k: row.score_snapshot[k] for k in SCORE_FIELDS}),
            findings=ReportFindings(**row.findings),
            areas_of_strength=tuple(row.areas_of_strength),
            areas_for_improvement=tuple(row.areas_for_improvement),
            compliance_rating=ComplianceRating(row.overall_compliance_rating),
            report_summary=row.report_summary,
            record_count=row.record_count,
            generated_at=_as_utc(row.generated_at),
            resident_ids=tuple(row.resident_ids),
            generated_by=row.generated_by,
            metadata=dict(row.extra_metadata),
        )

    @staticmethod
    def _to_stored_score(row: ComplianceScoreSnapshot) -> StoredScore:
        return StoredScore(
            snapshot_id=row.id,
            facility_id=row.facility_id,
            calculated_at=_as_utc(row.calculated_at),
            score=ComplianceScore(**{name: getattr(row, name) for name in SCORE_FIELDS}),
            trend=ScoreTrend(
                direction=TrendDirection(row.trend_direction),
                previous_score=row.previous_score,
                score_change=row.score_change,
            ),
            metadata=dict(row.calculation_metadata),
        )
