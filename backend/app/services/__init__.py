"""Services for the Care Compliance Engine.

Services implement business logic and data processing:
- coverage: Coverage calculators (expected vs. actual records)
- compliance_scoring: Five-domain compliance score and trend
- compliance_gaps: Per-resident and facility-wide gap detection
- inspection_report: Inspection report synthesis
- compliance_engine: Orchestrates the above over a record source and store
"""

from app.services.compliance_config import ScoringConfig
from app.services.compliance_engine import ComplianceEngine, ScoringPeriod, ScoringRun
from app.services.compliance_gaps import ComplianceGap, GapSummary, detect_compliance_gaps, summarize_gaps
from app.services.compliance_records import (
    AssessmentRecord,
    CarePlanRecord,
    ComplianceAlertRecord,
    ComplianceRecordSourceInterface,
    DocumentationRecord,
    IncidentRecord,
    InMemoryRecordSource,
    InteractionRecord,
    ResidentRecord,
)
from app.services.compliance_records_db import DatabaseRecordSource
from app.services.compliance_scoring import ComplianceScore, ScoreTrend, build_compliance_score, compute_trend
from app.services.compliance_store import ComplianceStoreInterface, InMemoryComplianceStore, StoredScore
from app.services.compliance_store_db import DatabaseComplianceStore
from app.services.inspection_report import InspectionReport, ReportFindings, synthesize_report

__all__ = [
    # Config
    "ScoringConfig",
    # Records
    "ResidentRecord",
    "DocumentationRecord",
    "CarePlanRecord",
    "AssessmentRecord",
    "IncidentRecord",
    "InteractionRecord",
    "ComplianceAlertRecord",
    "ComplianceRecordSourceInterface",
    "InMemoryRecordSource",
    "DatabaseRecordSource",
    # Scoring
    "ComplianceScore",
    "ScoreTrend",
    "build_compliance_score",
    "compute_trend",
    # Gaps
    "ComplianceGap",
    "GapSummary",
    "detect_compliance_gaps",
    "summarize_gaps",
    # Reports
    "InspectionReport",
    "ReportFindings",
    "synthesize_report",
    # Persistence
    "ComplianceStoreInterface",
    "InMemoryComplianceStore",
    "DatabaseComplianceStore",
    "StoredScore",
    # Engine
    "ComplianceEngine",
    "ScoringPeriod",
    "ScoringRun",
]
