"""Pydantic schemas for the Care Compliance Engine."""

from app.schemas.base import (
    AlertStatus,
    AssessmentType,
    CarePlanStatus,
    ComplianceRating,
    DocumentStatus,
    GapSeverity,
    GapType,
    ReportType,
    TrendDirection,
)
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
)

__all__ = [
    # Enums
    "AlertStatus",
    "AssessmentType",
    "CarePlanStatus",
    "ComplianceRating",
    "DocumentStatus",
    "GapSeverity",
    "GapType",
    "ReportType",
    "TrendDirection",
    # Compliance
    "ComplianceGapSchema",
    "ComplianceScoreResponse",
    "ComplianceScoreSchema",
    "GapListResponse",
    "InspectionReportResponse",
    "JobStatusResponse",
    "RecalculateResponse",
    "ReportRequest",
    "ScoreHistoryResponse",
]
