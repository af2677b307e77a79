"""Persistence interface for score snapshots and inspection reports.

Storage is append-only. A snapshot or report, once saved, is never
edited; a new scoring run saves a new snapshot.
"""

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from app.services.compliance_scoring import ComplianceScore, ScoreTrend
from app.services.inspection_report import InspectionReport


@dataclass(frozen=True)
class StoredScore:
    """A persisted score snapshot."""

    snapshot_id: str
    facility_id: str
    calculated_at: datetime
    score: ComplianceScore
    trend: ScoreTrend
    metadata: dict[str, Any] = field(default_factory=dict)


class ComplianceStoreInterface(ABC):
    """Interface for compliance persistence backends.

    Example usage:
        store = MyStore(...)
        stored = await store.save_score("F1", score, trend, now)
        latest = await store.latest_score("F1")
    """

    @abstractmethod
    async def save_score(
        self,
        facility_id: str,
        score: ComplianceScore,
        trend: ScoreTrend,
        calculated_at: datetime,
        metadata: dict[str, Any] | None = None,
    ) -> StoredScore:
        """Append a score snapshot to the facility's history.

        Returns:
            The stored snapshot with its assigned ID.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def latest_score(self, facility_id: str) -> StoredScore | None:
        """Most recent snapshot for a facility, or None."""
        pass  # pragma: no cover

    @abstractmethod
    async def score_history(self, facility_id: str, limit: int = 30) -> list[StoredScore]:
        """Snapshots for a facility, newest first."""
        pass  # pragma: no cover

    @abstractmethod
    async def save_report(self, report: InspectionReport) -> InspectionReport:
        """Store a report.

        Returns:
            The report with report_id set.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def get_report(self, report_id: str) -> InspectionReport | None:
        """Look up a stored report by ID."""
        pass  # pragma: no cover


class InMemoryComplianceStore(ComplianceStoreInterface):
    """Process-local store, used in tests and when no database is configured."""

    def __init__(self) -> None:
        self._scores: list[StoredScore] = []
        self._reports: dict[str, InspectionReport] = {}

    async def save_score(
        self,
        facility_id: str,
        score: ComplianceScore,
        trend: ScoreTrend,
        calculated_at: datetime,
        metadata: dict[str, Any] | None = None,
    ) -> StoredScore:
        stored = StoredScore(
            snapshot_id=str(uuid4()),
            facility_id=facility_id,
            calculated_at=calculated_at,
            score=score,
            trend=trend,
            metadata=dict(metadata or {}),
        )
        self._scores.append(stored)
        return stored

    async def latest_score(self, facility_id: str) -> StoredScore | None:
        history = await self.score_history(facility_id, limit=1)
        return history[0] if history else None

    async def score_history(self, facility_id: str, limit: int = 30) -> list[StoredScore]:
        # Reverse insertion order breaks ties between equal timestamps
        matching = [s for s in reversed(self._scores) if s.facility_id == facility_id]
        matching.sort(key=lambda s: s.calculated_at, reverse=True)
        return matching[:limit]

    async def save_report(self, report: InspectionReport) -> InspectionReport:
        stored = dataclasses.replace(report, report_id=str(uuid4()))
        self._reports[stored.report_id] = stored
        return stored

    async def get_report(self, report_id: str) -> InspectionReport | None:
        return self._reports.get(report_id)
