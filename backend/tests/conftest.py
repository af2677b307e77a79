"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.compliance import get_compliance_engine
from app.core.database import Base, create_session_factory
from app.main import app
from app.schemas.base import AssessmentType, CarePlanStatus, DocumentStatus
from app.services.compliance_config import ScoringConfig
from app.services.compliance_engine import ComplianceEngine
from app.services.compliance_records import (
    AssessmentRecord,
    CarePlanRecord,
    DocumentationRecord,
    InMemoryRecordSource,
    ResidentRecord,
)
from app.services.compliance_store import InMemoryComplianceStore

FIXED_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time used by every engine under test."""
    return FIXED_NOW


@pytest.fixture
def clock(now: datetime) -> Callable[[], datetime]:
    """Clock returning the fixed reference time."""
    return lambda: now


@pytest.fixture
def config() -> ScoringConfig:
    """Default scoring configuration."""
    return ScoringConfig()


@pytest.fixture
def build_healthy_source(now: datetime) -> Callable[..., InMemoryRecordSource]:
    """Factory for a fully documented facility.

    Each resident gets one approved note per day for the last 30 days,
    an active care plan reviewed 10 days ago and all four assessments
    completed 5 days ago.
    """

    def _build(resident_count: int = 10) -> InMemoryRecordSource:
        source = InMemoryRecordSource()
        for i in range(resident_count):
            resident_id = f"R{i + 1:03d}"
            source.residents.append(ResidentRecord(resident_id=resident_id, name=f"Resident {i + 1}"))
            for day in range(30):
                source.documentation.append(
                    DocumentationRecord(
                        resident_id=resident_id,
                        document_date=now.date() - timedelta(days=day),
                        status=DocumentStatus.APPROVED,
                        approved_by="nurse-1",
                    )
                )
            source.care_plans.append(
                CarePlanRecord(
                    resident_id=resident_id,
                    status=CarePlanStatus.ACTIVE,
                    updated_at=now - timedelta(days=10),
                )
            )
            for assessment_type in AssessmentType:
                source.assessments.append(
                    AssessmentRecord(
                        resident_id=resident_id,
                        assessment_type=assessment_type.value,
                        completed_at=now - timedelta(days=5),
                    )
                )
        return source

    return _build


@pytest.fixture
def healthy_source(build_healthy_source: Callable[..., InMemoryRecordSource]) -> InMemoryRecordSource:
    """A 10-resident fully documented facility."""
    return build_healthy_source()


@pytest.fixture
def store() -> InMemoryComplianceStore:
    """Empty in-memory compliance store."""
    return InMemoryComplianceStore()


@pytest.fixture
def engine(
    healthy_source: InMemoryRecordSource,
    store: InMemoryComplianceStore,
    config: ScoringConfig,
    clock: Callable[[], datetime],
) -> ComplianceEngine:
    """Engine over the healthy facility with an in-memory store."""
    return ComplianceEngine(healthy_source, store, config, clock)


@pytest.fixture
def mock_enqueue_job() -> MagicMock:
    """Create a mock enqueue_job function.

    Returns a mock that can be used to verify job enqueueing.
    """
    mock_job = MagicMock()
    mock_job.id = "mock-job-id"
    return MagicMock(return_value=mock_job)


@pytest.fixture
async def client_with_engine(
    engine: ComplianceEngine,
    mock_enqueue_job: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client backed by the in-memory engine.

    This allows testing API endpoints without a real database or Redis connection.
    """
    app.dependency_overrides[get_compliance_engine] = lambda: engine

    with patch("app.api.compliance.enqueue_job", mock_enqueue_job):
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client without engine overrides.

    Use this for endpoints that don't require database access.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of a throwaway SQLite database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'compliance.db'}"


@pytest.fixture
async def session_factory(database_url: str) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a SQLite database with every table created."""
    db_engine = create_async_engine(database_url, echo=False)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(db_engine)

    await db_engine.dispose()
