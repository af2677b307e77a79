"""Audit logging for compliance operations.

Records who computed which score snapshot and who generated which
inspection report. Score history and reports are regulatory evidence,
so every write and every failed write is audited.

This audit log should be persisted to a secure, append-only store
in production.
"""

import logging
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# Separate audit logger for compliance-critical events
audit_logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Types of auditable actions."""

    READ = "read"
    CREATE = "create"
    EXPORT = "export"

    # System
    ERROR = "error"


class AuditEvent(BaseModel):
    """Audit event record.

    Contains all relevant context for an auditable action.
    """

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    action: AuditAction = Field(..., description="Type of action performed")
    resource_type: str = Field(..., description="Type of resource accessed")
    resource_id: str | None = Field(None, description="ID of specific resource")
    facility_id: str | None = Field(None, description="Facility the resource belongs to")
    user_id: str | None = Field(None, description="User who performed action")
    details: dict | None = Field(None, description="Additional context")
    success: bool = Field(True, description="Whether action succeeded")


def log_audit(
    action: AuditAction,
    resource_type: str,
    resource_id: str | None = None,
    facility_id: str | None = None,
    user_id: str | None = None,
    details: dict | None = None,
    success: bool = True,
) -> AuditEvent:
    """Log an audit event.

    Args:
        action: Type of action being audited
        resource_type: The type of resource being accessed
        resource_id: Specific resource identifier
        facility_id: Facility the resource belongs to
        user_id: User performing the action
        details: Additional context
        success: Whether the action succeeded

    Returns:
        The created AuditEvent
    """
    event = AuditEvent(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        facility_id=facility_id,
        user_id=user_id,
        details=details,
        success=success,
    )

    log_level = logging.INFO if success else logging.WARNING
    audit_logger.log(
        log_level,
        f"AUDIT: {action.value} {resource_type}"
        f"{f'/{resource_id}' if resource_id else ''}"
        f"{f' facility={facility_id}' if facility_id else ''}"
        f" success={success}",
        extra={"audit_event": event.model_dump()},
    )

    return event


def log_score_snapshot(
    facility_id: str,
    snapshot_id: str | None,
    overall_score: int,
    success: bool = True,
    error: str | None = None,
) -> AuditEvent:
    """Log the persistence of a compliance score snapshot.

    Args:
        facility_id: Facility that was scored
        snapshot_id: Stored snapshot ID (None when the write failed)
        overall_score: Overall score of the snapshot
        success: Whether the snapshot was stored
        error: Failure description if applicable

    Returns:
        The created AuditEvent
    """
    details: dict = {"overall_score": overall_score}
    if error:
        details["error"] = error

    return log_audit(
        action=AuditAction.CREATE if success else AuditAction.ERROR,
        resource_type="compliance_score",
        resource_id=snapshot_id,
        facility_id=facility_id,
        details=details,
        success=success,
    )


def log_report_generated(
    facility_id: str,
    report_id: str | None,
    report_type: str,
    user_id: str | None = None,
    gap_count: int = 0,
    degraded: bool = False,
) -> AuditEvent:
    """Log the generation of an inspection report.

    Report generation is particularly important for compliance: the
    report is the evidence handed to inspectors.

    Args:
        facility_id: Facility the report covers
        report_id: Stored report ID
        report_type: Type of report (e.g., "full_inspection")
        user_id: User who requested the report
        gap_count: Number of gaps included in the report
        degraded: True when the report used the zero-gap fallback

    Returns:
        The created AuditEvent
    """
    return log_audit(
        action=AuditAction.EXPORT,
        resource_type="inspection_report",
        resource_id=report_id,
        facility_id=facility_id,
        user_id=user_id,
        details={"report_type": report_type, "gap_count": gap_count, "degraded": degraded},
    )


def log_compliance_failure(
    facility_id: str,
    resource_type: str,
    operation: str,
    error: Exception,
    user_id: str | None = None,
) -> AuditEvent:
    """Log a failed scoring, gap detection or report step.

    Args:
        facility_id: Facility the step ran for
        resource_type: Resource the step would have produced (e.g., "inspection_report")
        operation: Name of the failed step (e.g., "save_report")
        error: The error that stopped the step
        user_id: User who requested the step, if any

    Returns:
        The created AuditEvent
    """
    return log_audit(
        action=AuditAction.ERROR,
        resource_type=resource_type,
        facility_id=facility_id,
        user_id=user_id,
        details={"operation": operation, "error_type": type(error).__name__, "error": str(error)},
        success=False,
    )


def log_compliance_read(
    resource_type: str,
    facility_id: str | None = None,
    resource_id: str | None = None,
    details: dict | None = None,
) -> AuditEvent:
    """Log a read of stored compliance evidence (score history, reports).

    Args:
        resource_type: Type of resource read
        facility_id: Facility the resource belongs to
        resource_id: Specific resource identifier
        details: Additional context (e.g., number of snapshots returned)

    Returns:
        The created AuditEvent
    """
    return log_audit(
        action=AuditAction.READ,
        resource_type=resource_type,
        resource_id=resource_id,
        facility_id=facility_id,
        details=details,
    )
