"""Core application configuration and utilities."""

from app.core.audit import (
    AuditAction,
    AuditEvent,
    log_audit,
    log_compliance_failure,
    log_compliance_read,
    log_report_generated,
    log_score_snapshot,
)
from app.core.config import settings
from app.core.database import Base, async_session_maker, create_session_factory
from app.core.errors import ComplianceEngineError, DataUnavailable, InvalidInput

__all__ = [
    # Config
    "settings",
    # Database
    "Base",
    "async_session_maker",
    "create_session_factory",
    # Errors
    "ComplianceEngineError",
    "DataUnavailable",
    "InvalidInput",
    # Audit
    "AuditAction",
    "AuditEvent",
    "log_audit",
    "log_compliance_failure",
    "log_compliance_read",
    "log_report_generated",
    "log_score_snapshot",
]
