"""Create compliance score snapshot and inspection report tables.

Both tables are append-only: a facility may hold any number of snapshots
per day.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

SCORE_COLUMNS = (
    "overall_score",
    "safe_score",
    "effective_score",
    "caring_score",
    "responsive_score",
    "well_led_score",
    "daily_notes_coverage",
    "care_plan_coverage",
    "assessment_coverage",
    "incident_documentation_coverage",
    "risk_assessment_coverage",
)

COUNT_COLUMNS = (
    "overdue_documentation_count",
    "missing_signatures_count",
    "incomplete_care_plans_count",
    "outstanding_incidents_count",
)


def upgrade() -> None:
    # Create compliance_score_snapshots table
    op.create_table(
        "compliance_score_snapshots",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        *[sa.Column(name, sa.Integer(), nullable=False) for name in SCORE_COLUMNS],
        *[sa.Column(name, sa.Integer(), nullable=False, server_default="0") for name in COUNT_COLUMNS],
        sa.Column("trend_direction", sa.String(16), nullable=False, server_default="new"),
        sa.Column("previous_score", sa.Integer(), nullable=True),
        sa.Column("score_change", sa.Integer(), nullable=True),
        sa.Column("calculation_metadata", postgresql.JSONB(), nullable=False, server_default="{}"),
        *[
            sa.CheckConstraint(f"{name} >= 0 AND {name} <= 100", name=f"ck_compliance_score_snapshots_{name}")
            for name in SCORE_COLUMNS
        ],
    )
    op.create_index(
        "ix_compliance_score_snapshots_facility_id", "compliance_score_snapshots", ["facility_id"]
    )
    op.create_index(
        "ix_compliance_score_snapshots_calculated_at", "compliance_score_snapshots", ["calculated_at"]
    )

    # Create inspection_reports table
    op.create_table(
        "inspection_reports",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("facility_id", sa.String(255), nullable=False),
        sa.Column("report_name", sa.String(255), nullable=False),
        sa.Column("report_type", sa.String(32), nullable=False),
        sa.Column("date_range_start", sa.Date(), nullable=False),
        sa.Column("date_range_end", sa.Date(), nullable=False),
        sa.Column("resident_ids", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("report_summary", sa.Text(), nullable=False),
        sa.Column("findings", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("score_snapshot", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("areas_of_strength", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("areas_for_improvement", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("overall_compliance_rating", sa.String(32), nullable=False),
        sa.Column("compliance_score", sa.Integer(), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("generated_by", sa.String(255), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.CheckConstraint("date_range_start <= date_range_end", name="ck_inspection_reports_date_range"),
        sa.CheckConstraint(
            "report_type IN ('full_inspection', 'safe', 'effective', 'caring', 'responsive', "
            "'well_led', 'resident_specific', 'custom', 'pre_inspection', 'follow_up')",
            name="ck_inspection_reports_report_type",
        ),
    )
    op.create_index("ix_inspection_reports_facility_id", "inspection_reports", ["facility_id"])
    op.create_index("ix_inspection_reports_report_type", "inspection_reports", ["report_type"])


def downgrade() -> None:
    op.drop_table("inspection_reports")
    op.drop_table("compliance_score_snapshots")
