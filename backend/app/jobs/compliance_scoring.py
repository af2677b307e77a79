"""Compliance scoring job functions."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import settings
from app.core.database import create_session_factory
from app.core.errors import ComplianceEngineError
from app.services.compliance_engine import ComplianceEngine
from app.services.compliance_records_db import DatabaseRecordSource
from app.services.compliance_store_db import DatabaseComplianceStore

logger = logging.getLogger(__name__)


async def _recalculate(facility_id: str, period_days: int | None, database_url: str) -> dict:
    # Each job runs in its own event loop, so it gets its own engine
    engine = create_async_engine(database_url)
    session_factory = create_session_factory(engine)
    try:
        compliance = ComplianceEngine(
            source=DatabaseRecordSource(session_factory),
            store=DatabaseComplianceStore(session_factory),
        )
        run = await compliance.score_facility(facility_id, compliance.trailing_period(period_days))
    finally:
        await engine.dispose()

    return {
        "success": True,
        "facility_id": facility_id,
        "snapshot_id": run.snapshot_id,
        "calculated_at": run.calculated_at.isoformat(),
        "resident_count": run.resident_count,
        "overall_score": run.score.overall_score,
        "trend": run.trend.direction.value if run.trend else None,
        "score": run.score.to_dict(),
    }


def recalculate_facility_score(
    facility_id: str,
    period_days: int | None = None,
    database_url: str | None = None,
) -> dict:
    """Recalculate and store a facility's compliance score.

    This function is executed by an RQ worker.

    Args:
        facility_id: Facility to score.
        period_days: Trailing period length. Defaults to the configured period.
        database_url: Database to use. Defaults to settings.database_url.

    Returns:
        Dictionary with the stored snapshot summary, or the error on failure.
    """
    logger.info(f"Starting compliance score recalculation for facility_id={facility_id}")

    try:
        result = asyncio.run(_recalculate(facility_id, period_days, database_url or settings.database_url))
    except ComplianceEngineError as e:
        logger.exception(f"Compliance score recalculation failed for facility {facility_id}: {e}")
        return {"success": False, "facility_id": facility_id, "error": str(e)}

    logger.info(
        f"Compliance score recalculation completed for facility_id={facility_id}, "
        f"overall_score={result['overall_score']}"
    )
    return result
