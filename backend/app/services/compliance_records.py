"""Typed care records consumed by the compliance engine.

The record store hands back loose key/value payloads. Everything that
enters scoring passes through one of the frozen dataclasses below, so
the calculators never see an unknown shape. `from_mapping` coerces ISO
strings to dates and rejects anything it cannot interpret with
InvalidInput.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from app.core.errors import InvalidInput
from app.schemas.base import AlertStatus, CarePlanStatus, DocumentStatus, GapType


# ============================================================================
# Coercion helpers
# ============================================================================


def _require(payload: Mapping[str, Any], key: str, record: str) -> Any:
    if key not in payload or payload[key] is None:
        raise InvalidInput(f"{record} is missing required field '{key}'", field=key)
    return payload[key]


def parse_datetime(value: Any, field_name: str) -> datetime:
    """Coerce a datetime, date or ISO string to an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidInput(f"Invalid datetime for '{field_name}': {value!r}", field=field_name) from e
    else:
        raise InvalidInput(f"Invalid datetime for '{field_name}': {value!r}", field=field_name)

    # Naive timestamps from the store are UTC
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_date(value: Any, field_name: str) -> date:
    """Coerce a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return parse_datetime(value, field_name).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise InvalidInput(f"Invalid date for '{field_name}': {value!r}", field=field_name) from e
    raise InvalidInput(f"Invalid date for '{field_name}': {value!r}", field=field_name)


# ============================================================================
# Record types
# ============================================================================


@dataclass(frozen=True)
class ResidentRecord:
    """An admitted resident of a facility."""

    resident_id: str
    name: str | None = None
    facility_id: str | None = None
    is_active: bool = True

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ResidentRecord":
        return cls(
            resident_id=str(_require(payload, "resident_id", "ResidentRecord")),
            name=payload.get("name") or payload.get("resident_name"),
            facility_id=payload.get("facility_id"),
            is_active=bool(payload.get("is_active", True)),
        )


@dataclass(frozen=True)
class DocumentationRecord:
    """A daily care note or other care documentation."""

    resident_id: str
    document_date: date
    status: DocumentStatus = DocumentStatus.DRAFT
    approved_by: str | None = None
    document_id: str | None = None
    facility_id: str | None = None

    @property
    def is_unsigned_draft(self) -> bool:
        return self.approved_by is None and self.status == DocumentStatus.DRAFT

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "DocumentationRecord":
        status = payload.get("status", DocumentStatus.DRAFT.value)
        try:
            status = DocumentStatus(status)
        except ValueError as e:
            raise InvalidInput(f"Unknown documentation status: {status!r}", field="status") from e
        return cls(
            resident_id=str(_require(payload, "resident_id", "DocumentationRecord")),
            document_date=parse_date(_require(payload, "document_date", "DocumentationRecord"), "document_date"),
            status=status,
            approved_by=payload.get("approved_by"),
            document_id=payload.get("id") or payload.get("document_id"),
            facility_id=payload.get("facility_id"),
        )


@dataclass(frozen=True)
class CarePlanRecord:
    """A resident care plan version."""

    resident_id: str
    status: CarePlanStatus
    updated_at: datetime
    facility_id: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "CarePlanRecord":
        status = _require(payload, "status", "CarePlanRecord")
        try:
            status = CarePlanStatus(status)
        except ValueError as e:
            raise InvalidInput(f"Unknown care plan status: {status!r}", field="status") from e
        return cls(
            resident_id=str(_require(payload, "resident_id", "CarePlanRecord")),
            status=status,
            updated_at=parse_datetime(_require(payload, "updated_at", "CarePlanRecord"), "updated_at"),
            facility_id=payload.get("facility_id"),
        )


@dataclass(frozen=True)
class AssessmentRecord:
    """A resident assessment. Incomplete assessments have no completed_at."""

    resident_id: str
    assessment_type: str
    completed_at: datetime | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "AssessmentRecord":
        completed_at = payload.get("completed_at")
        return cls(
            resident_id=str(_require(payload, "resident_id", "AssessmentRecord")),
            assessment_type=str(_require(payload, "assessment_type", "AssessmentRecord")),
            completed_at=parse_datetime(completed_at, "completed_at") if completed_at is not None else None,
        )


@dataclass(frozen=True)
class IncidentRecord:
    """An incident logged against a resident."""

    resident_id: str
    created_at: datetime
    has_generated_report: bool = False
    resolved: bool = False
    facility_id: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "IncidentRecord":
        has_report = payload.get("has_generated_report")
        if has_report is None:
            has_report = payload.get("ai_generated_report") is not None
        return cls(
            resident_id=str(_require(payload, "resident_id", "IncidentRecord")),
            created_at=parse_datetime(_require(payload, "created_at", "IncidentRecord"), "created_at"),
            has_generated_report=bool(has_report),
            resolved=bool(payload.get("resolved", False)),
            facility_id=payload.get("facility_id"),
        )


@dataclass(frozen=True)
class InteractionRecord:
    """A logged care interaction with pre-computed sentiment and concern tags."""

    resident_id: str
    detected_concerns: tuple[str, ...] = ()
    sentiment_score: float | None = None
    interaction_start: datetime | None = None
    facility_id: str | None = None

    def __post_init__(self) -> None:
        if self.sentiment_score is not None and not -1.0 <= self.sentiment_score <= 1.0:
            raise InvalidInput(
                f"Sentiment score {self.sentiment_score} outside [-1, 1]",
                field="sentiment_score",
            )

    @property
    def has_concerns(self) -> bool:
        return len(self.detected_concerns) > 0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "InteractionRecord":
        concerns = payload.get("detected_concerns") or ()
        if isinstance(concerns, str) or not isinstance(concerns, Iterable):
            raise InvalidInput("detected_concerns must be a list of strings", field="detected_concerns")
        sentiment = payload.get("sentiment_score")
        try:
            sentiment = float(sentiment) if sentiment is not None else None
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Invalid sentiment score: {sentiment!r}", field="sentiment_score") from e
        start = payload.get("interaction_start")
        return cls(
            resident_id=str(_require(payload, "resident_id", "InteractionRecord")),
            detected_concerns=tuple(str(c) for c in concerns),
            sentiment_score=sentiment,
            interaction_start=parse_datetime(start, "interaction_start") if start is not None else None,
            facility_id=payload.get("facility_id"),
        )


@dataclass(frozen=True)
class ComplianceAlertRecord:
    """An alert raised by the external alerting collaborator."""

    alert_type: str
    status: AlertStatus = AlertStatus.ACTIVE
    resident_id: str | None = None
    facility_id: str | None = None

    @property
    def is_overdue_alert(self) -> bool:
        return self.status == AlertStatus.ACTIVE and self.alert_type in OVERDUE_ALERT_TYPES


# Active alerts of these types count as overdue documentation
OVERDUE_ALERT_TYPES: frozenset[str] = frozenset(
    {GapType.OVERDUE_REVIEW.value, GapType.MISSING_DOCUMENTATION.value}
)


# ============================================================================
# Record source interface
# ============================================================================


class ComplianceRecordSourceInterface(ABC):
    """Read-only access to the record collections a scoring run needs.

    Every query is independent of the others so the engine can issue
    them concurrently. Implementations raise DataUnavailable when the
    underlying store fails.
    """

    @abstractmethod
    async def get_active_residents(self, facility_id: str) -> list[ResidentRecord]:
        """Active residents of a facility."""
        pass  # pragma: no cover

    @abstractmethod
    async def get_documentation(
        self, facility_id: str, resident_ids: list[str], since: date
    ) -> list[DocumentationRecord]:
        """Documentation dated on or after `since` for the given residents."""
        pass  # pragma: no cover

    @abstractmethod
    async def get_unsigned_documents(self, facility_id: str, limit: int) -> list[DocumentationRecord]:
        """Unapproved draft documents, oldest document_date first."""
        pass  # pragma: no cover

    @abstractmethod
    async def get_care_plans(self, facility_id: str, resident_ids: list[str]) -> list[CarePlanRecord]:
        """All care plans of the given residents."""
        pass  # pragma: no cover

    @abstractmethod
    async def get_assessments(self, resident_ids: list[str], since: datetime) -> list[AssessmentRecord]:
        """Assessments completed on or after `since`."""
        pass  # pragma: no cover

    @abstractmethod
    async def get_incidents(
        self, facility_id: str, resident_ids: list[str], since: datetime
    ) -> list[IncidentRecord]:
        """Incidents created on or after `since`."""
        pass  # pragma: no cover

    @abstractmethod
    async def get_interactions(
        self, facility_id: str, resident_ids: list[str], since: datetime
    ) -> list[InteractionRecord]:
        """Care interactions started on or after `since`."""
        pass  # pragma: no cover

    @abstractmethod
    async def count_overdue_alerts(self, facility_id: str) -> int:
        """Active overdue-review / missing-documentation alerts."""
        pass  # pragma: no cover

    @abstractmethod
    async def count_unsigned_documents(self, facility_id: str, since: date) -> int:
        """Unapproved drafts dated on or after `since`."""
        pass  # pragma: no cover

    @abstractmethod
    async def count_draft_care_plans(self, facility_id: str) -> int:
        """Care plans still in draft."""
        pass  # pragma: no cover

    @abstractmethod
    async def count_outstanding_incidents(self, facility_id: str) -> int:
        """Incidents not yet resolved."""
        pass  # pragma: no cover


def _in_facility(record_facility: str | None, facility_id: str) -> bool:
    return record_facility is None or record_facility == facility_id


@dataclass
class InMemoryRecordSource(ComplianceRecordSourceInterface):
    """Record source backed by in-memory lists.

    Records without a facility_id are treated as belonging to every
    facility, which keeps single-facility fixtures short.

    Usage:
        source = InMemoryRecordSource(residents=[ResidentRecord("R1")])
        residents = await source.get_active_residents("F1")
    """

    residents: list[ResidentRecord] = field(default_factory=list)
    documentation: list[DocumentationRecord] = field(default_factory=list)
    care_plans: list[CarePlanRecord] = field(default_factory=list)
    assessments: list[AssessmentRecord] = field(default_factory=list)
    incidents: list[IncidentRecord] = field(default_factory=list)
    interactions: list[InteractionRecord] = field(default_factory=list)
    alerts: list[ComplianceAlertRecord] = field(default_factory=list)

    async def get_active_residents(self, facility_id: str) -> list[ResidentRecord]:
        return [r for r in self.residents if r.is_active and _in_facility(r.facility_id, facility_id)]

    async def get_documentation(
        self, facility_id: str, resident_ids: list[str], since: date
    ) -> list[DocumentationRecord]:
        wanted = set(resident_ids)
        return [
            d
            for d in self.documentation
            if d.resident_id in wanted and d.document_date >= since and _in_facility(d.facility_id, facility_id)
        ]

    async def get_unsigned_documents(self, facility_id: str, limit: int) -> list[DocumentationRecord]:
        unsigned = [
            d for d in self.documentation if d.is_unsigned_draft and _in_facility(d.facility_id, facility_id)
        ]
        unsigned.sort(key=lambda d: d.document_date)
        return unsigned[:limit]

    async def get_care_plans(self, facility_id: str, resident_ids: list[str]) -> list[CarePlanRecord]:
        wanted = set(resident_ids)
        return [p for p in self.care_plans if p.resident_id in wanted and _in_facility(p.facility_id, facility_id)]

    async def get_assessments(self, resident_ids: list[str], since: datetime) -> list[AssessmentRecord]:
        wanted = set(resident_ids)
        return [
            a
            for a in self.assessments
            if a.resident_id in wanted and a.completed_at is not None and a.completed_at >= since
        ]

    async def get_incidents(
        self, facility_id: str, resident_ids: list[str], since: datetime
    ) -> list[IncidentRecord]:
        wanted = set(resident_ids)
        return [
            i
            for i in self.incidents
            if i.resident_id in wanted and i.created_at >= since and _in_facility(i.facility_id, facility_id)
        ]

    async def get_interactions(
        self, facility_id: str, resident_ids: list[str], since: datetime
    ) -> list[InteractionRecord]:
        wanted = set(resident_ids)
        return [
            i
            for i in self.interactions
            if i.resident_id in wanted
            and (i.interaction_start is None or i.interaction_start >= since)
            and _in_facility(i.facility_id, facility_id)
        ]

    async def count_overdue_alerts(self, facility_id: str) -> int:
        return sum(1 for a in self.alerts if a.is_overdue_alert and _in_facility(a.facility_id, facility_id))

    async def count_unsigned_documents(self, facility_id: str, since: date) -> int:
        return sum(
            1
            for d in self.documentation
            if d.is_unsigned_draft and d.document_date >= since and _in_facility(d.facility_id, facility_id)
        )

    async def count_draft_care_plans(self, facility_id: str) -> int:
        return sum(
            1
            for p in self.care_plans
            if p.status == CarePlanStatus.DRAFT and _in_facility(p.facility_id, facility_id)
        )

    async def count_outstanding_incidents(self, facility_id: str) -> int:
        return sum(1 for i in self.incidents if not i.resolved and _in_facility(i.facility_id, facility_id))
