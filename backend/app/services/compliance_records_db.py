"""Database-backed record source for the compliance engine.

Reads the care record tables with SQLAlchemy. Each query opens its own
session from the session factory, so the engine can run the queries of
one scoring run concurrently.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import DataUnavailable
from app.models.care_records import (
    CareDocumentation,
    CareInteractionLog,
    CarePlan,
    CarePlanAssessment,
    ComplianceAlert,
    FacilityResident,
    IncidentLog,
)
from app.schemas.base import AlertStatus, CarePlanStatus, DocumentStatus
from app.services.compliance_records import (
    OVERDUE_ALERT_TYPES,
    AssessmentRecord,
    CarePlanRecord,
    ComplianceRecordSourceInterface,
    DocumentationRecord,
    IncidentRecord,
    InteractionRecord,
    ResidentRecord,
)

logger = logging.getLogger(__name__)


class DatabaseRecordSource(ComplianceRecordSourceInterface):
    """Record source reading the care record tables.

    Usage:
        source = DatabaseRecordSource(async_session_maker)
        residents = await source.get_active_residents("F1")
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the record source.

        Args:
            session_factory: Factory producing AsyncSession instances.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, query: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Record query '{query}' failed: {e}")
            raise DataUnavailable(f"Record query '{query}' failed", source=query) from e

    async def get_active_residents(self, facility_id: str) -> list[ResidentRecord]:
        stmt = (
            select(FacilityResident)
            .where(FacilityResident.facility_id == facility_id)
            .where(FacilityResident.is_active.is_(True))
            .order_by(FacilityResident.resident_id)
        )
        async with self._session("active_residents") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            ResidentRecord(
                resident_id=row.resident_id,
                name=row.resident_name,
                facility_id=row.facility_id,
                is_active=row.is_active,
            )
            for row in rows
        ]

    async def get_documentation(
        self, facility_id: str, resident_ids: list[str], since: date
    ) -> list[DocumentationRecord]:
        stmt = (
            select(CareDocumentation)
            .where(CareDocumentation.facility_id == facility_id)
            .where(CareDocumentation.resident_id.in_(resident_ids))
            .where(CareDocumentation.document_date >= since)
        )
        async with self._session("documentation") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self._to_documentation(row) for row in rows]

    async def get_unsigned_documents(self, facility_id: str, limit: int) -> list[DocumentationRecord]:
        stmt = (
            select(CareDocumentation)
            .where(CareDocumentation.facility_id == facility_id)
            .where(CareDocumentation.approved_by.is_(None))
            .where(CareDocumentation.status == DocumentStatus.DRAFT.value)
            .order_by(CareDocumentation.document_date.asc(), CareDocumentation.id)
            .limit(limit)
        )
        async with self._session("unsigned_documents") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self._to_documentation(row) for row in rows]

    async def get_care_plans(self, facility_id: str, resident_ids: list[str]) -> list[CarePlanRecord]:
        stmt = (
            select(CarePlan)
            .where(CarePlan.facility_id == facility_id)
            .where(CarePlan.resident_id.in_(resident_ids))
        )
        async with self._session("care_plans") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            CarePlanRecord.from_mapping(
                {
                    "resident_id": row.resident_id,
                    "status": row.status,
                    "updated_at": row.updated_at,
                    "facility_id": row.facility_id,
                }
            )
            for row in rows
        ]

    async def get_assessments(self, resident_ids: list[str], since: datetime) -> list[AssessmentRecord]:
        stmt = (
            select(CarePlanAssessment)
            .where(CarePlanAssessment.resident_id.in_(resident_ids))
            .where(CarePlanAssessment.completed_at.is_not(None))
            .where(CarePlanAssessment.completed_at >= since)
        )
        async with self._session("assessments") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            AssessmentRecord.from_mapping(
                {
                    "resident_id": row.resident_id,
                    "assessment_type": row.assessment_type,
                    "completed_at": row.completed_at,
                }
            )
            for row in rows
        ]

    async def get_incidents(
        self, facility_id: str, resident_ids: list[str], since: datetime
    ) -> list[IncidentRecord]:
        stmt = (
            select(IncidentLog)
            .where(IncidentLog.facility_id == facility_id)
            .where(IncidentLog.resident_id.in_(resident_ids))
            .where(IncidentLog.created_at >= since)
        )
        async with self._session("incidents") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            IncidentRecord.from_mapping(
                {
                    "resident_id": row.resident_id,
                    "created_at": row.created_at,
                    "has_generated_report": row.generated_report is not None,
                    "resolved": row.resolved,
                    "facility_id": row.facility_id,
                }
            )
            for row in rows
        ]

    async def get_interactions(
        self, facility_id: str, resident_ids: list[str], since: datetime
    ) -> list[InteractionRecord]:
        stmt = (
            select(CareInteractionLog)
            .where(CareInteractionLog.facility_id == facility_id)
            .where(CareInteractionLog.resident_id.in_(resident_ids))
            .where(CareInteractionLog.interaction_start >= since)
        )
        async with self._session("interactions") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            InteractionRecord.from_mapping(
                {
                    "resident_id": row.resident_id,
                    "detected_concerns": row.detected_concerns,
                    "sentiment_score": row.sentiment_score,
                    "interaction_start": row.interaction_start,
                    "facility_id": row.facility_id,
                }
            )
            for row in rows
        ]

    async def count_overdue_alerts(self, facility_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(ComplianceAlert)
            .where(ComplianceAlert.facility_id == facility_id)
            .where(ComplianceAlert.status == AlertStatus.ACTIVE.value)
            .where(ComplianceAlert.alert_type.in_(sorted(OVERDUE_ALERT_TYPES)))
        )
        async with self._session("overdue_alerts") as session:
            return (await session.execute(stmt)).scalar_one()

    async def count_unsigned_documents(self, facility_id: str, since: date) -> int:
        stmt = (
            select(func.count())
            .select_from(CareDocumentation)
            .where(CareDocumentation.facility_id == facility_id)
            .where(CareDocumentation.approved_by.is_(None))
            .where(CareDocumentation.status == DocumentStatus.DRAFT.value)
            .where(CareDocumentation.document_date >= since)
        )
        async with self._session("unsigned_count") as session:
            return (await session.execute(stmt)).scalar_one()

    async def count_draft_care_plans(self, facility_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(CarePlan)
            .where(CarePlan.facility_id == facility_id)
            .where(CarePlan.status == CarePlanStatus.DRAFT.value)
        )
        async with self._session("draft_care_plans") as session:
            return (await session.execute(stmt)).scalar_one()

    async def count_outstanding_incidents(self, facility_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(IncidentLog)
            .where(IncidentLog.facility_id == facility_id)
            .where(IncidentLog.resolved.is_(False))
        )
        async with self._session("outstanding_incidents") as session:
            return (await session.execute(stmt)).scalar_one()

    @staticmethod
    def _to_documentation(row: CareDocumentation) -> DocumentationRecord:
        return DocumentationRecord.from_mapping(
            {
                "id": row.id,
                "resident_id": row.resident_id,
                "document_date": row.document_date,
                "status": row.status,
                "approved_by": row.approved_by,
                "facility_id": row.facility_id,
            }
        )
