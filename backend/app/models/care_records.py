"""SQLAlchemy models for the care records read by the compliance engine.

These tables are written by the care-management application; the
engine only reads them.
"""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, JSONType


class FacilityResident(Base):
    """Membership of a resident in a facility.

    Created on admission and deactivated on discharge.
    """

    __tablename__ = "facility_residents"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    resident_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<FacilityResident(facility_id={self.facility_id}, resident_id={self.resident_id}, is_active={self.is_active})>"


class CareDocumentation(Base):
    """A daily care note or other care document."""

    __tablename__ = "care_documentation"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    document_type: Mapped[str] = mapped_column(String(100), nullable=False, default="daily_note")
    document_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft", index=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<CareDocumentation(id={self.id}, resident_id={self.resident_id}, document_date={self.document_date}, status={self.status})>"


class CarePlan(Base):
    """A resident care plan version."""

    __tablename__ = "care_plans"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<CarePlan(id={self.id}, resident_id={self.resident_id}, status={self.status})>"


class CarePlanAssessment(Base):
    """A mobility, nutrition, mental health or risk assessment."""

    __tablename__ = "care_plan_assessments"

    resident_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    assessment_type: Mapped[str] = mapped_column(String(64), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<CarePlanAssessment(id={self.id}, resident_id={self.resident_id}, assessment_type={self.assessment_type})>"


class IncidentLog(Base):
    """An incident logged against a resident.

    created_at (from Base) is the incident time.
    """

    __tablename__ = "incident_alert_log"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    generated_report: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<IncidentLog(id={self.id}, resident_id={self.resident_id}, resolved={self.resolved})>"


class CareInteractionLog(Base):
    """A care interaction with pre-computed sentiment and concern tags."""

    __tablename__ = "care_interaction_logs"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    interaction_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    detected_concerns: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    sentiment_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<CareInteractionLog(id={self.id}, resident_id={self.resident_id}, sentiment_score={self.sentiment_score})>"


class ComplianceAlert(Base):
    """An alert raised by the alerting service for a compliance problem."""

    __tablename__ = "compliance_alerts"

    facility_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    alert_type: Mapped[str] = mapped_column(String(64), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active", index=True)
    resident_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    days_overdue: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<ComplianceAlert(id={self.id}, alert_type={self.alert_type}, status={self.status})>"
