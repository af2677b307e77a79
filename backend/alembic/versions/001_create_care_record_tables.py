"""Create care record tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    # Create facility_residents table
    op.create_table(
        "facility_residents",
        *_base_columns(),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("resident_id", sa.String(255), nullable=False),
        sa.Column("resident_name", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_facility_residents_facility_id", "facility_residents", ["facility_id"])
    op.create_index("ix_facility_residents_resident_id", "facility_residents", ["resident_id"])

    # Create care_documentation table
    op.create_table(
        "care_documentation",
        *_base_columns(),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("resident_id", sa.String(255), nullable=False),
        sa.Column("document_type", sa.String(100), nullable=False, server_default="daily_note"),
        sa.Column("document_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
    )
    op.create_index("ix_care_documentation_facility_id", "care_documentation", ["facility_id"])
    op.create_index("ix_care_documentation_resident_id", "care_documentation", ["resident_id"])
    op.create_index("ix_care_documentation_document_date", "care_documentation", ["document_date"])
    op.create_index("ix_care_documentation_status", "care_documentation", ["status"])

    # Create care_plans table
    op.create_table(
        "care_plans",
        *_base_columns(),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("resident_id", sa.String(255), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_care_plans_facility_id", "care_plans", ["facility_id"])
    op.create_index("ix_care_plans_resident_id", "care_plans", ["resident_id"])

    # Create care_plan_assessments table
    op.create_table(
        "care_plan_assessments",
        *_base_columns(),
        sa.Column("resident_id", sa.String(255), nullable=False),
        sa.Column("assessment_type", sa.String(64), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_care_plan_assessments_resident_id", "care_plan_assessments", ["resident_id"])
    op.create_index("ix_care_plan_assessments_completed_at", "care_plan_assessments", ["completed_at"])

    # Create incident_alert_log table
    op.create_table(
        "incident_alert_log",
        *_base_columns(),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("resident_id", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("generated_report", sa.Text(), nullable=True),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_incident_alert_log_facility_id", "incident_alert_log", ["facility_id"])
    op.create_index("ix_incident_alert_log_resident_id", "incident_alert_log", ["resident_id"])

    # Create care_interaction_logs table
    op.create_table(
        "care_interaction_logs",
        *_base_columns(),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("resident_id", sa.String(255), nullable=False),
        sa.Column("interaction_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("detected_concerns", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("sentiment_score", sa.Float(), nullable=True),
        sa.CheckConstraint(
            "sentiment_score IS NULL OR (sentiment_score >= -1 AND sentiment_score <= 1)",
            name="ck_care_interaction_logs_sentiment_range",
        ),
    )
    op.create_index("ix_care_interaction_logs_facility_id", "care_interaction_logs", ["facility_id"])
    op.create_index("ix_care_interaction_logs_resident_id", "care_interaction_logs", ["resident_id"])
    op.create_index(
        "ix_care_interaction_logs_interaction_start", "care_interaction_logs", ["interaction_start"]
    )

    # Create compliance_alerts table
    op.create_table(
        "compliance_alerts",
        *_base_columns(),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("alert_type", sa.String(64), nullable=False),
        sa.Column("severity", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(32), nullable=False, server_default="active"),
        sa.Column("resident_id", sa.String(255), nullable=True),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("days_overdue", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_compliance_alerts_facility_id", "compliance_alerts", ["facility_id"])
    op.create_index("ix_compliance_alerts_status", "compliance_alerts", ["status"])


def downgrade() -> None:
    op.drop_table("compliance_alerts")
    op.drop_table("care_interaction_logs")
    op.drop_table("incident_alert_log")
    op.drop_table("care_plan_assessments")
    op.drop_table("care_plans")
    op.drop_table("care_documentation")
    op.drop_table("facility_residents")
