"""Tests for the compliance API endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient
from rq.job import JobStatus

from app.core.errors import DataUnavailable
from app.services.compliance_engine import ComplianceEngine
from app.services.compliance_records import InMemoryRecordSource

REPORT_BODY = {
    "report_type": "full_inspection",
    "date_range_start": "2026-02-13",
    "date_range_end": "2026-03-15",
    "generated_by": "manager-1",
}


class TestScoreEndpoints:
    """Tests for score endpoints."""

    @pytest.mark.asyncio
    async def test_get_score(self, client_with_engine: AsyncClient) -> None:
        """Test the score endpoint returns the score, period and trend."""
        response = await client_with_engine.get("/compliance/F1/score")

        assert response.status_code == 200
        data = response.json()
        assert data["facility_id"] == "F1"
        assert data["resident_count"] == 10
        assert data["score"]["overall_score"] == 97
        assert data["score"]["daily_notes_coverage"] == 100
        assert data["trend"]["direction"] == "new"
        assert data["snapshot_id"]

    @pytest.mark.asyncio
    async def test_get_score_custom_period(self, client_with_engine: AsyncClient) -> None:
        """Test the period_days query parameter sets the period."""
        response = await client_with_engine.get("/compliance/F1/score", params={"period_days": 7})

        assert response.status_code == 200
        data = response.json()
        assert data["period_start"].startswith("2026-03-08")

    @pytest.mark.asyncio
    async def test_get_score_rejects_bad_period(self, client_with_engine: AsyncClient) -> None:
        """Test a non-positive period is rejected."""
        response = await client_with_engine.get("/compliance/F1/score", params={"period_days": 0})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_score_unavailable(
        self, client_with_engine: AsyncClient, healthy_source: InMemoryRecordSource
    ) -> None:
        """Test a record-source failure maps to 503."""
        with patch.object(
            healthy_source, "get_active_residents", AsyncMock(side_effect=DataUnavailable("offline"))
        ):
            response = await client_with_engine.get("/compliance/F1/score")

        assert response.status_code == 503
        assert response.json()["detail"] == "Compliance score unavailable"

    @pytest.mark.asyncio
    async def test_get_score_resident_lookup_error(
        self, client_with_engine: AsyncClient, healthy_source: InMemoryRecordSource
    ) -> None:
        """Test a raw driver error on the resident lookup maps to 503, not 500."""
        with patch.object(healthy_source, "get_active_residents", AsyncMock(side_effect=OSError("socket closed"))):
            response = await client_with_engine.get("/compliance/F1/score")

        assert response.status_code == 503
        assert response.json()["detail"] == "Compliance score unavailable"

    @pytest.mark.asyncio
    async def test_score_history(self, client_with_engine: AsyncClient) -> None:
        """Test history lists stored snapshots newest first."""
        await client_with_engine.get("/compliance/F1/score")
        await client_with_engine.get("/compliance/F1/score")

        response = await client_with_engine.get("/compliance/F1/score/history", params={"limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["snapshots"][0]["trend"]["direction"] == "stable"
        assert data["snapshots"][1]["trend"]["direction"] == "new"

    @pytest.mark.asyncio
    async def test_recalculate_enqueues_job(
        self, client_with_engine: AsyncClient, mock_enqueue_job: MagicMock
    ) -> None:
        """Test recalculation is queued on the compliance queue."""
        response = await client_with_engine.post("/compliance/F1/score/recalculate", params={"period_days": 14})

        assert response.status_code == 202
        assert response.json() == {"facility_id": "F1", "job_id": "mock-job-id", "status": "queued"}
        args, kwargs = mock_enqueue_job.call_args
        assert args[1:] == ("F1", 14)
        assert kwargs["queue_name"] == "compliance_scoring"

    @pytest.mark.asyncio
    async def test_recalculate_queue_unavailable(
        self, client_with_engine: AsyncClient, mock_enqueue_job: MagicMock
    ) -> None:
        """Test a Redis failure maps to 503."""
        mock_enqueue_job.side_effect = ConnectionError("redis down")

        response = await client_with_engine.post("/compliance/F1/score/recalculate")

        assert response.status_code == 503


class TestJobStatusEndpoint:
    """Tests for polling recalculation jobs."""

    @pytest.mark.asyncio
    async def test_finished_job_includes_result(self, client_with_engine: AsyncClient) -> None:
        """Test a finished job reports its status and the stored snapshot summary."""
        job = MagicMock()
        job.get_status.return_value = JobStatus.FINISHED
        job.return_value.return_value = {"success": True, "facility_id": "F1", "overall_score": 97}

        with patch("app.api.compliance.get_job", MagicMock(return_value=job)) as mock_get_job:
            response = await client_with_engine.get("/compliance/jobs/mock-job-id")

        assert response.status_code == 200
        assert response.json() == {
            "job_id": "mock-job-id",
            "status": "finished",
            "result": {"success": True, "facility_id": "F1", "overall_score": 97},
        }
        mock_get_job.assert_called_once_with("mock-job-id")

    @pytest.mark.asyncio
    async def test_queued_job_has_no_result(self, client_with_engine: AsyncClient) -> None:
        """Test a job that has not run yet carries no result."""
        job = MagicMock()
        job.get_status.return_value = JobStatus.QUEUED

        with patch("app.api.compliance.get_job", MagicMock(return_value=job)):
            response = await client_with_engine.get("/compliance/jobs/mock-job-id")

        assert response.status_code == 200
        assert response.json() == {"job_id": "mock-job-id", "status": "queued", "result": None}
        job.return_value.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_job(self, client_with_engine: AsyncClient) -> None:
        """Test an unknown job ID returns 404."""
        with patch("app.api.compliance.get_job", MagicMock(return_value=None)):
            response = await client_with_engine.get("/compliance/jobs/nope")

        assert response.status_code == 404
        assert response.json()["detail"] == "Job with ID nope not found"

    @pytest.mark.asyncio
    async def test_queue_unavailable(self, client_with_engine: AsyncClient) -> None:
        """Test a Redis failure during lookup maps to 503."""
        with patch("app.api.compliance.get_job", MagicMock(side_effect=ConnectionError("redis down"))):
            response = await client_with_engine.get("/compliance/jobs/mock-job-id")

        assert response.status_code == 503
        assert response.json()["detail"] == "Job queue unavailable"


class TestGapEndpoint:
    """Tests for the gaps endpoint."""

    @pytest.mark.asyncio
    async def test_healthy_facility_has_no_gaps(self, client_with_engine: AsyncClient) -> None:
        """Test the healthy facility reports no gaps."""
        response = await client_with_engine.get("/compliance/F1/gaps")

        assert response.status_code == 200
        assert response.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_gaps_with_summary(
        self, client_with_engine: AsyncClient, healthy_source: InMemoryRecordSource
    ) -> None:
        """Test gaps are returned with by-severity and by-type counts."""
        healthy_source.documentation = [d for d in healthy_source.documentation if d.resident_id != "R001"]

        response = await client_with_engine.get("/compliance/F1/gaps")

        data = response.json()
        assert data["total"] == 1
        assert data["gaps"][0]["type"] == "missing_documentation"
        assert data["gaps"][0]["severity"] == "critical"
        assert data["gaps"][0]["resident_name"] == "Resident 1"
        assert data["by_severity"] == {"critical": 1}
        assert data["by_type"] == {"missing_documentation": 1}


class TestReportEndpoints:
    """Tests for report endpoints."""

    @pytest.mark.asyncio
    async def test_create_and_fetch_report(self, client_with_engine: AsyncClient) -> None:
        """Test a report is generated, stored and retrievable."""
        response = await client_with_engine.post("/compliance/F1/reports", json=REPORT_BODY)

        assert response.status_code == 201
        report = response.json()
        assert report["report_id"]
        assert report["compliance_rating"] == "outstanding"
        assert report["overall_score"] == 97
        assert report["findings"]["identified_gaps"] == 0
        assert report["generated_by"] == "manager-1"

        fetched = await client_with_engine.get(f"/compliance/reports/{report['report_id']}")
        assert fetched.status_code == 200
        assert fetched.json() == report

    @pytest.mark.asyncio
    async def test_unknown_report(self, client_with_engine: AsyncClient) -> None:
        """Test an unknown report ID returns 404."""
        response = await client_with_engine.get("/compliance/reports/does-not-exist")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_report_type(self, client_with_engine: AsyncClient) -> None:
        """Test an unknown report type is rejected."""
        response = await client_with_engine.post(
            "/compliance/F1/reports", json={**REPORT_BODY, "report_type": "quarterly"}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_inverted_date_range(self, client_with_engine: AsyncClient) -> None:
        """Test an inverted date range is rejected with 422."""
        response = await client_with_engine.post(
            "/compliance/F1/reports",
            json={**REPORT_BODY, "date_range_start": "2026-03-15", "date_range_end": "2026-02-13"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_degraded_report(
        self, client_with_engine: AsyncClient, healthy_source: InMemoryRecordSource
    ) -> None:
        """Test a gap-detection failure still produces a report with the failure in metadata."""
        with patch.object(
            healthy_source, "get_unsigned_documents", AsyncMock(side_effect=DataUnavailable("offline"))
        ):
            response = await client_with_engine.post("/compliance/F1/reports", json=REPORT_BODY)

        assert response.status_code == 201
        assert response.json()["metadata"]["gap_detection_failed"] is True

    @pytest.mark.asyncio
    async def test_report_store_unavailable(self, client_with_engine: AsyncClient, engine: ComplianceEngine) -> None:
        """Test a report persistence failure maps to 503."""
        with patch.object(engine._store, "save_report", AsyncMock(side_effect=DataUnavailable("db down"))):
            response = await client_with_engine.post("/compliance/F1/reports", json=REPORT_BODY)

        assert response.status_code == 503
