"""Base schemas and enums for the Care Compliance Engine."""

from enum import Enum


class DocumentStatus(str, Enum):
    """Lifecycle status of a care documentation record."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"


class CarePlanStatus(str, Enum):
    """Lifecycle status of a resident care plan."""

    DRAFT = "draft"
    ACTIVE = "active"
    UNDER_REVIEW = "under_review"
    ARCHIVED = "archived"


class AssessmentType(str, Enum):
    """Assessments every resident must complete each period."""

    MOBILITY = "mobility"
    NUTRITION = "nutrition"
    MENTAL_HEALTH = "mental_health"
    RISK = "risk"


class AlertStatus(str, Enum):
    """Status of a compliance alert raised by the alerting collaborator."""

    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class GapType(str, Enum):
    """Category of a detected compliance gap."""

    MISSING_DOCUMENTATION = "missing_documentation"
    OVERDUE_REVIEW = "overdue_review"
    INCOMPLETE_CARE_PLAN = "incomplete_care_plan"
    UNSIGNED_DOCUMENT = "unsigned_document"
    EXPIRED_ASSESSMENT = "expired_assessment"


class GapSeverity(str, Enum):
    """Severity of a compliance gap."""

    CRITICAL = "critical"  # Resident has no evidence of care at all
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ComplianceRating(str, Enum):
    """Inspection rating band derived from the overall score."""

    OUTSTANDING = "outstanding"
    GOOD = "good"
    REQUIRES_IMPROVEMENT = "requires_improvement"
    INADEQUATE = "inadequate"


class ReportType(str, Enum):
    """Scope of an inspection report."""

    FULL_INSPECTION = "full_inspection"
    SAFE = "safe"
    EFFECTIVE = "effective"
    CARING = "caring"
    RESPONSIVE = "responsive"
    WELL_LED = "well_led"
    RESIDENT_SPECIFIC = "resident_specific"
    CUSTOM = "custom"
    PRE_INSPECTION = "pre_inspection"
    FOLLOW_UP = "follow_up"


class TrendDirection(str, Enum):
    """Direction of the overall score relative to the previous snapshot."""

    NEW = "new"
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
