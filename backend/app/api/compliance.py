"""Compliance API endpoints.

Scores, gaps and inspection reports for a facility.
"""

import logging
from typing import Annotated, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.database import async_session_maker
from app.core.errors import ComplianceEngineError, DataUnavailable, InvalidInput
from app.core.queue import QUEUE_NAMES, enqueue_job, get_job, job_status_value
from app.jobs.compliance_scoring import recalculate_facility_score
from app.schemas.compliance import (
    ComplianceGapSchema,
    ComplianceScoreResponse,
    ComplianceScoreSchema,
    GapListResponse,
    InspectionReportResponse,
    JobStatusResponse,
    RecalculateResponse,
    ReportRequest,
    ScoreHistoryResponse,
    ScoreSnapshotSchema,
    ScoreTrendSchema,
)
from app.services.compliance_engine import ComplianceEngine
from app.services.compliance_gaps import summarize_gaps
from app.services.compliance_records_db import DatabaseRecordSource
from app.services.compliance_scoring import ScoreTrend
from app.services.compliance_store_db import DatabaseComplianceStore
from app.services.inspection_report import InspectionReport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compliance", tags=["Compliance"])


def get_compliance_engine() -> ComplianceEngine:
    """Engine backed by the application database."""
    return ComplianceEngine(
        source=DatabaseRecordSource(async_session_maker),
        store=DatabaseComplianceStore(async_session_maker),
    )


# Type alias for engine dependency
Engine = Annotated[ComplianceEngine, Depends(get_compliance_engine)]


# ==============================================================================
# Helper Functions
# ==============================================================================


def _raise_http(e: ComplianceEngineError, what: str) -> NoReturn:
    """Translate an engine error into an HTTP error."""
    if isinstance(e, InvalidInput):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    if isinstance(e, DataUnavailable):
        logger.error(f"{what} unavailable: {e!r} (cause: {e.__cause__!r})")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"{what} unavailable") from e
    logger.error(f"{what} failed: {e!r}")
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"{what} failed") from e


def _trend_schema(trend: ScoreTrend | None) -> ScoreTrendSchema | None:
    if trend is None:
        return None
    return ScoreTrendSchema(
        direction=trend.direction,
        previous_score=trend.previous_score,
        score_change=trend.score_change,
    )


def _report_response(report: InspectionReport) -> InspectionReportResponse:
    return InspectionReportResponse(**report.to_dict(), overall_score=report.overall_score)


# ==============================================================================
# Scores
# ==============================================================================


@router.get(
    "/{facility_id}/score",
    response_model=ComplianceScoreResponse,
    summary="Compute compliance score",
    description="Compute the facility's compliance score over a trailing period and store a snapshot.",
)
async def get_compliance_score(
    facility_id: str,
    engine: Engine,
    period_days: int | None = Query(None, ge=1, le=365, description="Trailing period length in days"),
) -> ComplianceScoreResponse:
    """Compute the current compliance score for a facility."""
    try:
        run = await engine.score_facility(facility_id, engine.trailing_period(period_days))
    except ComplianceEngineError as e:
        _raise_http(e, "Compliance score")

    return ComplianceScoreResponse(
        facility_id=facility_id,
        calculated_at=run.calculated_at,
        period_start=run.period.start,
        period_end=run.period.end,
        resident_count=run.resident_count,
        score=ComplianceScoreSchema(**run.score.to_dict()),
        trend=_trend_schema(run.trend),
        snapshot_id=run.snapshot_id,
    )


@router.get(
    "/{facility_id}/score/history",
    response_model=ScoreHistoryResponse,
    summary="Get score history",
)
async def get_score_history(
    facility_id: str,
    engine: Engine,
    limit: int = Query(30, ge=1, le=365, description="Maximum snapshots to return"),
) -> ScoreHistoryResponse:
    """Stored score snapshots for a facility, newest first."""
    try:
        history = await engine.score_history(facility_id, limit)
    except ComplianceEngineError as e:
        _raise_http(e, "Score history")

    snapshots = [
        ScoreSnapshotSchema(
            snapshot_id=s.snapshot_id,
            calculated_at=s.calculated_at,
            score=ComplianceScoreSchema(**s.score.to_dict()),
            trend=_trend_schema(s.trend),
        )
        for s in history
    ]
    return ScoreHistoryResponse(facility_id=facility_id, snapshots=snapshots, total=len(snapshots))


@router.post(
    "/{facility_id}/score/recalculate",
    response_model=RecalculateResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue a score recalculation",
)
async def recalculate_score(
    facility_id: str,
    period_days: int | None = Query(None, ge=1, le=365),
) -> RecalculateResponse:
    """Enqueue a background recalculation of the facility's score."""
    try:
        job = enqueue_job(
            recalculate_facility_score,
            facility_id,
            period_days,
            queue_name=QUEUE_NAMES["compliance"],
        )
    except Exception as e:
        logger.error(f"Failed to enqueue score recalculation for facility {facility_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Job queue unavailable",
        ) from e

    return RecalculateResponse(facility_id=facility_id, job_id=job.id)


@router.get(
    "/jobs/{job_id}",
    response_model=JobStatusResponse,
    summary="Get recalculation job status",
    description="Get the status of a queued score recalculation, with its result once finished.",
)
async def get_recalculation_status(job_id: str) -> JobStatusResponse:
    """Poll a job returned by the recalculate endpoint."""
    try:
        job = get_job(job_id)
    except Exception as e:
        logger.error(f"Failed to look up job {job_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Job queue unavailable",
        ) from e

    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job with ID {job_id} not found",
        )

    job_status = job_status_value(job)
    response = JobStatusResponse(job_id=job_id, status=job_status)
    if job_status == "finished":
        response.result = job.return_value()
    return response


# ==============================================================================
# Gaps
# ==============================================================================


@router.get(
    "/{facility_id}/gaps",
    response_model=GapListResponse,
    summary="Detect compliance gaps",
)
async def get_compliance_gaps(facility_id: str, engine: Engine) -> GapListResponse:
    """Current compliance gaps for a facility, most severe first."""
    try:
        gaps = await engine.detect_gaps(facility_id)
    except ComplianceEngineError as e:
        _raise_http(e, "Compliance gaps")

    summary = summarize_gaps(gaps)
    return GapListResponse(
        facility_id=facility_id,
        gaps=[ComplianceGapSchema(**g.to_dict()) for g in gaps],
        total=summary.total,
        by_severity=summary.by_severity,
        by_type=summary.by_type,
    )


# ==============================================================================
# Reports
# ==============================================================================


@router.post(
    "/{facility_id}/reports",
    response_model=InspectionReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate inspection report",
)
async def create_inspection_report(
    facility_id: str,
    request: ReportRequest,
    engine: Engine,
) -> InspectionReportResponse:
    """Score the facility, detect gaps and store an inspection report."""
    try:
        report = await engine.generate_report(
            facility_id,
            request.report_type,
            request.date_range_start,
            request.date_range_end,
            resident_ids=request.resident_ids,
            generated_by=request.generated_by,
        )
    except ComplianceEngineError as e:
        _raise_http(e, "Inspection report")

    return _report_response(report)


@router.get(
    "/reports/{report_id}",
    response_model=InspectionReportResponse,
    summary="Get inspection report",
)
async def get_inspection_report(report_id: str, engine: Engine) -> InspectionReportResponse:
    """Fetch a stored inspection report."""
    try:
        report = await engine.get_report(report_id)
    except ComplianceEngineError as e:
        _raise_http(e, "Inspection report")

    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report {report_id} not found",
        )
    return _report_response(report)
