"""Tests for the typed record boundary and the in-memory record source."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from app.core.errors import InvalidInput
from app.schemas.base import AlertStatus, CarePlanStatus, DocumentStatus
from app.services.compliance_records import (
    AssessmentRecord,
    CarePlanRecord,
    ComplianceAlertRecord,
    DocumentationRecord,
    IncidentRecord,
    InMemoryRecordSource,
    InteractionRecord,
    ResidentRecord,
    parse_date,
    parse_datetime,
)


class TestParsing:
    """Tests for date and datetime coercion."""

    def test_parse_datetime_iso_z(self) -> None:
        """Test a trailing Z is read as UTC."""
        assert parse_datetime("2026-03-01T08:30:00Z", "at") == datetime(2026, 3, 1, 8, 30, tzinfo=UTC)

    def test_parse_datetime_naive_is_utc(self) -> None:
        """Test naive values are assumed to be UTC."""
        assert parse_datetime(datetime(2026, 3, 1, 8, 30), "at").tzinfo == UTC

    def test_parse_datetime_converts_offsets(self) -> None:
        """Test offset-aware values are converted to UTC."""
        value = datetime(2026, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        assert parse_datetime(value, "at") == datetime(2026, 3, 1, 8, 0, tzinfo=UTC)

    def test_parse_date_from_timestamp_string(self) -> None:
        """Test a timestamp string yields its calendar date."""
        assert parse_date("2026-03-01T23:00:00", "d") == date(2026, 3, 1)

    @pytest.mark.parametrize("value", ["yesterday", 42, None])
    def test_invalid_values(self, value: object) -> None:
        """Test uninterpretable values raise InvalidInput naming the field."""
        with pytest.raises(InvalidInput) as exc_info:
            parse_datetime(value, "updated_at")
        assert exc_info.value.field == "updated_at"

        with pytest.raises(InvalidInput):
            parse_date(value, "document_date")


class TestFromMapping:
    """Tests for coercing store payloads into records."""

    def test_resident_name_alias(self) -> None:
        """Test the store's resident_name column is accepted as the name."""
        record = ResidentRecord.from_mapping({"resident_id": 7, "resident_name": "Alice"})

        assert record.resident_id == "7"
        assert record.name == "Alice"
        assert record.is_active is True

    def test_documentation_defaults_to_draft(self) -> None:
        """Test documentation without a status is an unsigned draft."""
        record = DocumentationRecord.from_mapping({"resident_id": "R1", "document_date": "2026-03-01"})

        assert record.status == DocumentStatus.DRAFT
        assert record.is_unsigned_draft is True

    def test_approved_documentation_is_signed(self) -> None:
        """Test an approved note is not an unsigned draft."""
        record = DocumentationRecord.from_mapping(
            {"resident_id": "R1", "document_date": "2026-03-01", "status": "approved", "approved_by": "nurse-1"}
        )
        assert record.is_unsigned_draft is False

    def test_unknown_documentation_status(self) -> None:
        """Test an unknown status is rejected."""
        with pytest.raises(InvalidInput) as exc_info:
            DocumentationRecord.from_mapping({"resident_id": "R1", "document_date": "2026-03-01", "status": "lost"})
        assert exc_info.value.field == "status"

    def test_missing_required_field(self) -> None:
        """Test a missing key is rejected with the key as the field."""
        with pytest.raises(InvalidInput) as exc_info:
            CarePlanRecord.from_mapping({"resident_id": "R1", "status": "active"})
        assert exc_info.value.field == "updated_at"

    def test_care_plan(self) -> None:
        """Test a care plan payload is typed."""
        record = CarePlanRecord.from_mapping(
            {"resident_id": "R1", "status": "active", "updated_at": "2026-01-01T00:00:00+00:00"}
        )

        assert record.status == CarePlanStatus.ACTIVE
        assert record.updated_at == datetime(2026, 1, 1, tzinfo=UTC)

    def test_incomplete_assessment(self) -> None:
        """Test an assessment without completed_at stays incomplete."""
        record = AssessmentRecord.from_mapping({"resident_id": "R1", "assessment_type": "risk"})
        assert record.completed_at is None

    def test_incident_report_flag_from_report_text(self) -> None:
        """Test the generated-report flag is derived from the report column."""
        with_report = IncidentRecord.from_mapping(
            {"resident_id": "R1", "created_at": "2026-03-01T09:00:00Z", "ai_generated_report": "Fall, no injury"}
        )
        without_report = IncidentRecord.from_mapping({"resident_id": "R1", "created_at": "2026-03-01T09:00:00Z"})

        assert with_report.has_generated_report is True
        assert without_report.has_generated_report is False

    def test_interaction(self) -> None:
        """Test concerns become a tuple and sentiment a float."""
        record = InteractionRecord.from_mapping(
            {"resident_id": "R1", "detected_concerns": ["pain", "loneliness"], "sentiment_score": "-0.5"}
        )

        assert record.detected_concerns == ("pain", "loneliness")
        assert record.sentiment_score == -0.5
        assert record.has_concerns is True

    def test_interaction_concerns_must_be_a_list(self) -> None:
        """Test a bare string of concerns is rejected."""
        with pytest.raises(InvalidInput):
            InteractionRecord.from_mapping({"resident_id": "R1", "detected_concerns": "pain"})

    def test_sentiment_out_of_range(self) -> None:
        """Test sentiment outside [-1, 1] is rejected."""
        with pytest.raises(InvalidInput) as exc_info:
            InteractionRecord(resident_id="R1", sentiment_score=1.5)
        assert exc_info.value.field == "sentiment_score"


class TestAlerts:
    """Tests for overdue alert classification."""

    def test_only_active_overdue_types_count(self) -> None:
        """Test resolved alerts and other alert types are not overdue."""
        assert ComplianceAlertRecord("overdue_review").is_overdue_alert is True
        assert ComplianceAlertRecord("missing_documentation").is_overdue_alert is True
        assert ComplianceAlertRecord("overdue_review", status=AlertStatus.RESOLVED).is_overdue_alert is False
        assert ComplianceAlertRecord("unsigned_document").is_overdue_alert is False


class TestInMemoryRecordSource:
    """Tests for InMemoryRecordSource filtering."""

    @pytest.mark.asyncio
    async def test_facility_scoping(self) -> None:
        """Test records tagged with another facility are excluded."""
        source = InMemoryRecordSource(
            residents=[
                ResidentRecord("R1", facility_id="F1"),
                ResidentRecord("R2", facility_id="F2"),
                ResidentRecord("R3"),
                ResidentRecord("R4", facility_id="F1", is_active=False),
            ]
        )

        residents = await source.get_active_residents("F1")

        assert [r.resident_id for r in residents] == ["R1", "R3"]

    @pytest.mark.asyncio
    async def test_unsigned_documents_oldest_first(self, now: datetime) -> None:
        """Test unsigned drafts are returned oldest first up to the limit."""
        today = now.date()
        source = InMemoryRecordSource(
            documentation=[
                DocumentationRecord("R1", today - timedelta(days=1)),
                DocumentationRecord("R2", today - timedelta(days=9)),
                DocumentationRecord("R3", today - timedelta(days=4), DocumentStatus.APPROVED, "nurse-1"),
                DocumentationRecord("R4", today - timedelta(days=5)),
            ]
        )

        unsigned = await source.get_unsigned_documents("F1", limit=2)

        assert [d.resident_id for d in unsigned] == ["R2", "R4"]
        assert await source.count_unsigned_documents("F1", today - timedelta(days=6)) == 2
