"""Compliance engine.

Entry points for scoring a facility, detecting its compliance gaps and
producing inspection reports. The engine fetches records through a
ComplianceRecordSourceInterface, hands them to the pure calculators in
coverage / compliance_scoring / compliance_gaps / inspection_report,
and appends results to a ComplianceStoreInterface.

Independent record queries are fanned out in an asyncio.TaskGroup and
joined before any aggregation: the overall score needs all five
coverage dimensions, and the gap sort needs every check's output.
"""

import asyncio
import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

from app.core.audit import (
    log_compliance_failure,
    log_compliance_read,
    log_report_generated,
    log_score_snapshot,
)
from app.core.errors import ComplianceEngineError, DataUnavailable, InvalidInput
from app.schemas.base import ReportType
from app.services.compliance_config import ScoringConfig
from app.services.compliance_gaps import ComplianceGap, detect_compliance_gaps
from app.services.compliance_records import ComplianceRecordSourceInterface, ResidentRecord
from app.services.compliance_scoring import (
    ComplianceScore,
    ScoreTrend,
    build_compliance_score,
    compute_trend,
)
from app.services.compliance_store import ComplianceStoreInterface, StoredScore
from app.services.coverage import (
    InteractionSummary,
    assessment_coverage,
    care_plan_coverage,
    daily_notes_coverage,
    incident_coverage,
    interaction_coverage,
    risk_assessment_coverage,
)
from app.services.inspection_report import InspectionReport, synthesize_report, validate_report_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringPeriod:
    """Window a score is computed over."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidInput("Scoring period start must not be after its end", field="period")

    @property
    def days(self) -> int:
        # Partial days count as a full day
        return -(-(self.end - self.start) // timedelta(days=1))

    @classmethod
    def trailing(cls, days: int, now: datetime) -> "ScoringPeriod":
        if days <= 0:
            raise InvalidInput("Scoring period must cover at least one day", field="period_days")
        return cls(start=now - timedelta(days=days), end=now)


@dataclass(frozen=True)
class ScoringRun:
    """Outcome of one scoring run, including its persisted snapshot if any."""

    facility_id: str
    score: ComplianceScore
    period: ScoringPeriod
    resident_count: int
    calculated_at: datetime
    trend: ScoreTrend | None = None
    snapshot_id: str | None = None


def _surface(group: BaseExceptionGroup, operation: str, facility_id: str) -> ComplianceEngineError:
    """Pick the error to raise from a failed task group.

    The first engine error among all leaves (depth-first) wins; anything
    else is reported as DataUnavailable.
    """
    for exc in _leaves(group):
        if isinstance(exc, ComplianceEngineError):
            return exc
    error = DataUnavailable(f"{operation} failed for facility {facility_id}", source=operation)
    error.__cause__ = group
    return error


def _leaves(group: BaseExceptionGroup) -> Iterator[BaseException]:
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            yield from _leaves(exc)
        else:
            yield exc


def _non_negative(value: int, name: str) -> int:
    if value < 0:
        raise InvalidInput(f"{name} must be >= 0, got {value}", field=name)
    return value


class ComplianceEngine:
    """Computes compliance scores, gaps and inspection reports for facilities.

    Usage:
        engine = ComplianceEngine(source, store)
        score = await engine.compute_score("F1")
        gaps = await engine.detect_gaps("F1")
        report = await engine.generate_report("F1", "full_inspection", start, end)
    """

    def __init__(
        self,
        source: ComplianceRecordSourceInterface,
        store: ComplianceStoreInterface | None = None,
        config: ScoringConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            source: Where care records are read from.
            store: Where snapshots and reports are appended. None disables persistence.
            config: Thresholds and fallbacks. Defaults to application settings.
            clock: Returns the current aware datetime. Defaults to UTC now.
        """
        self._source = source
        self._store = store
        self._config = config or ScoringConfig.from_settings()
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def trailing_period(self, days: int | None = None) -> ScoringPeriod:
        """Period ending now, `days` long (configured period by default)."""
        return ScoringPeriod.trailing(days or self._config.period_days, self._clock())

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    async def compute_score(self, facility_id: str, period: ScoringPeriod | None = None) -> ComplianceScore:
        """Compute (and persist) a facility's compliance score.

        Raises:
            DataUnavailable: A record query failed.
            InvalidInput: A record or count broke an invariant.
        """
        run = await self.score_facility(facility_id, period)
        return run.score

    async def score_facility(self, facility_id: str, period: ScoringPeriod | None = None) -> ScoringRun:
        """Compute a score and append it to the facility's history."""
        now = self._clock()
        period = period or ScoringPeriod.trailing(self._config.period_days, now)

        try:
            score, resident_count = await self._calculate_score(facility_id, period)
        except ComplianceEngineError as e:
            log_compliance_failure(facility_id, "compliance_score", "compute_score", e)
            raise
        logger.info(
            f"Compliance score for facility {facility_id}: overall={score.overall_score} "
            f"residents={resident_count}"
        )

        stored = await self._persist_score(facility_id, score, period, resident_count, now)
        return ScoringRun(
            facility_id=facility_id,
            score=score,
            period=period,
            resident_count=resident_count,
            calculated_at=now,
            trend=stored.trend if stored else None,
            snapshot_id=stored.snapshot_id if stored else None,
        )

    async def _active_residents(self, facility_id: str, operation: str) -> list[ResidentRecord]:
        try:
            return await self._source.get_active_residents(facility_id)
        except ComplianceEngineError:
            raise
        except Exception as e:
            logger.error(f"Active resident lookup failed for facility {facility_id} during {operation}: {e!r}")
            raise DataUnavailable(
                f"Active resident lookup failed for facility {facility_id}", source="active_residents"
            ) from e

    async def _calculate_score(self, facility_id: str, period: ScoringPeriod) -> tuple[ComplianceScore, int]:
        residents = await self._active_residents(facility_id, "compute_score")
        if not residents:
            return ComplianceScore.empty(), 0

        resident_ids = [r.resident_id for r in residents]
        try:
            async with asyncio.TaskGroup() as tg:
                daily_notes = tg.create_task(self._daily_notes(facility_id, resident_ids, period))
                care_plans = tg.create_task(self._care_plans(facility_id, resident_ids))
                assessments = tg.create_task(self._assessments(resident_ids, period))
                incidents = tg.create_task(self._incidents(facility_id, resident_ids, period))
                interactions = tg.create_task(self._interactions(facility_id, resident_ids, period))
                overdue = tg.create_task(self._source.count_overdue_alerts(facility_id))
                unsigned = tg.create_task(
                    self._source.count_unsigned_documents(facility_id, period.start.date())
                )
                draft_plans = tg.create_task(self._source.count_draft_care_plans(facility_id))
                outstanding = tg.create_task(self._source.count_outstanding_incidents(facility_id))
        except BaseExceptionGroup as eg:
            logger.error(f"Compliance scoring failed for facility {facility_id}: {eg!r}")
            raise _surface(eg, "compute_score", facility_id)

        assessment, risk_assessment = assessments.result()
        score = build_compliance_score(
            total_residents=len(residents),
            daily_notes=daily_notes.result(),
            care_plan=care_plans.result(),
            assessment=assessment,
            incident_documentation=incidents.result(),
            risk_assessment=risk_assessment,
            interactions=interactions.result(),
            overdue_alert_count=_non_negative(overdue.result(), "overdue_alert_count"),
            missing_signatures_count=_non_negative(unsigned.result(), "missing_signatures_count"),
            incomplete_care_plans_count=_non_negative(draft_plans.result(), "incomplete_care_plans_count"),
            outstanding_incidents_count=_non_negative(outstanding.result(), "outstanding_incidents_count"),
        )
        return score, len(residents)

    async def _daily_notes(self, facility_id: str, resident_ids: list[str], period: ScoringPeriod) -> int:
        start = period.start.date()
        documentation = await self._source.get_documentation(facility_id, resident_ids, start)
        return daily_notes_coverage(len(resident_ids), period.days, documentation, start)

    async def _care_plans(self, facility_id: str, resident_ids: list[str]) -> int:
        plans = await self._source.get_care_plans(facility_id, resident_ids)
        return care_plan_coverage(resident_ids, plans)

    async def _assessments(self, resident_ids: list[str], period: ScoringPeriod) -> tuple[int, int]:
        records = await self._source.get_assessments(resident_ids, period.start)
        return (
            assessment_coverage(resident_ids, records, period.start, self._config.assessments_per_resident),
            risk_assessment_coverage(resident_ids, records, period.start),
        )

    async def _incidents(self, facility_id: str, resident_ids: list[str], period: ScoringPeriod) -> int:
        records = await self._source.get_incidents(facility_id, resident_ids, period.start)
        return incident_coverage(records)

    async def _interactions(
        self, facility_id: str, resident_ids: list[str], period: ScoringPeriod
    ) -> InteractionSummary:
        records = await self._source.get_interactions(facility_id, resident_ids, period.start)
        return interaction_coverage(records, self._config)

    async def _persist_score(
        self,
        facility_id: str,
        score: ComplianceScore,
        period: ScoringPeriod,
        resident_count: int,
        now: datetime,
    ) -> StoredScore | None:
        """Append the snapshot; a failed write is logged and audited, the score is still returned."""
        if self._store is None:
            return None

        metadata: dict[str, Any] = {
            "period_start": period.start.isoformat(),
            "period_end": period.end.isoformat(),
            "period_days": period.days,
            "resident_count": resident_count,
        }
        try:
            previous = await self._store.latest_score(facility_id)
            trend = compute_trend(score, previous.score.overall_score if previous else None)
            stored = await self._store.save_score(facility_id, score, trend, now, metadata)
        except DataUnavailable as e:
            logger.error(f"Failed to save compliance score for facility {facility_id}: {e}")
            log_score_snapshot(facility_id, None, score.overall_score, success=False, error=str(e))
            return None

        log_score_snapshot(facility_id, stored.snapshot_id, score.overall_score)
        return stored

    async def score_history(self, facility_id: str, limit: int = 30) -> list[StoredScore]:
        """Persisted snapshots for a facility, newest first."""
        if self._store is None:
            return []
        history = await self._store.score_history(facility_id, limit)
        log_compliance_read("compliance_score", facility_id=facility_id, details={"count": len(history)})
        return history

    # ------------------------------------------------------------------
    # Gaps
    # ------------------------------------------------------------------

    async def detect_gaps(self, facility_id: str) -> list[ComplianceGap]:
        """Detect the facility's current compliance gaps, most severe first.

        Raises:
            DataUnavailable: A record query failed.
        """
        try:
            return await self._detect_gaps(facility_id)
        except ComplianceEngineError as e:
            log_compliance_failure(facility_id, "compliance_gaps", "detect_gaps", e)
            raise

    async def _detect_gaps(self, facility_id: str) -> list[ComplianceGap]:
        now = self._clock()
        residents = await self._active_residents(facility_id, "detect_gaps")
        if not residents:
            return []

        resident_ids = [r.resident_id for r in residents]
        window_start = now - timedelta(days=self._config.gap_lookback_days)
        try:
            async with asyncio.TaskGroup() as tg:
                documentation = tg.create_task(
                    self._source.get_documentation(facility_id, resident_ids, window_start.date())
                )
                care_plans = tg.create_task(self._source.get_care_plans(facility_id, resident_ids))
                assessments = tg.create_task(self._source.get_assessments(resident_ids, window_start))
                unsigned = tg.create_task(
                    self._source.get_unsigned_documents(facility_id, self._config.unsigned_scan_limit)
                )
        except BaseExceptionGroup as eg:
            logger.error(f"Gap detection failed for facility {facility_id}: {eg!r}")
            raise _surface(eg, "detect_gaps", facility_id)

        gaps = detect_compliance_gaps(
            residents=residents,
            documentation=documentation.result(),
            care_plans=care_plans.result(),
            assessments=assessments.result(),
            unsigned_documents=unsigned.result(),
            now=now,
            config=self._config,
        )
        logger.info(f"Detected {len(gaps)} compliance gaps for facility {facility_id}")
        return gaps

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def generate_report(
        self,
        facility_id: str,
        report_type: ReportType | str,
        date_range_start: date,
        date_range_end: date,
        resident_ids: Sequence[str] | None = None,
        generated_by: str | None = None,
    ) -> InspectionReport:
        """Score the facility, detect its gaps and store an inspection report.

        A gap-detection failure does not fail the report: the report is
        built with no gaps and the failure is recorded in its metadata.

        Raises:
            InvalidInput: Bad report parameters.
            DataUnavailable: Scoring or report persistence failed.
        """
        report_type = validate_report_request(report_type, date_range_start, date_range_end)

        run = await self.score_facility(facility_id)
        metadata: dict[str, Any] = {}
        if run.snapshot_id:
            metadata["score_snapshot_id"] = run.snapshot_id

        try:
            gaps = await self.detect_gaps(facility_id)
        except ComplianceEngineError as e:
            logger.warning(f"Gap detection failed for report on facility {facility_id}, using zero gaps: {e}")
            gaps = []
            metadata["gap_detection_failed"] = True
            metadata["gap_detection_error"] = {"type": type(e).__name__, "message": str(e)}

        if resident_ids:
            wanted = set(resident_ids)
            gaps = [g for g in gaps if g.resident_id in wanted]

        report = synthesize_report(
            facility_id=facility_id,
            score=run.score,
            gaps=gaps,
            report_type=report_type,
            date_range_start=date_range_start,
            date_range_end=date_range_end,
            generated_at=run.calculated_at,
            resident_ids=resident_ids,
            generated_by=generated_by,
            metadata=metadata,
        )

        if self._store is not None:
            try:
                report = await self._store.save_report(report)
            except ComplianceEngineError as e:
                logger.error(f"Failed to save inspection report for facility {facility_id}: {e}")
                log_compliance_failure(facility_id, "inspection_report", "save_report", e, user_id=generated_by)
                raise

        log_report_generated(
            facility_id,
            report.report_id,
            report.report_type.value,
            user_id=generated_by,
            gap_count=report.record_count,
            degraded=bool(metadata.get("gap_detection_failed")),
        )
        return report

    async def get_report(self, report_id: str) -> InspectionReport | None:
        """Look up a stored inspection report."""
        if self._store is None:
            return None
        report = await self._store.get_report(report_id)
        if report is not None:
            log_compliance_read("inspection_report", facility_id=report.facility_id, resource_id=report_id)
        return report
