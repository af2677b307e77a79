"""SQLAlchemy ORM models for the Care Compliance Engine.

All models inherit from Base which provides:
- id: UUID primary key
- created_at: Timestamp

Models:
- FacilityResident, CareDocumentation, CarePlan, CarePlanAssessment,
  IncidentLog, CareInteractionLog, ComplianceAlert (care records, read-only)
- ComplianceScoreSnapshot, InspectionReportRecord (append-only outputs)
"""

from app.core.database import Base
from app.models.care_records import (
    CareDocumentation,
    CareInteractionLog,
    CarePlan,
    CarePlanAssessment,
    ComplianceAlert,
    FacilityResident,
    IncidentLog,
)
from app.models.compliance import ComplianceScoreSnapshot, InspectionReportRecord

__all__ = [
    "Base",
    "FacilityResident",
    "CareDocumentation",
    "CarePlan",
    "CarePlanAssessment",
    "IncidentLog",
    "CareInteractionLog",
    "ComplianceAlert",
    "ComplianceScoreSnapshot",
    "InspectionReportRecord",
]
