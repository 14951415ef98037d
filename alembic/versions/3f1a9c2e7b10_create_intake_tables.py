"""Create form template, patient, response, intake and pending merge tables."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3f1a9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None


JSONType = postgresql.JSONB().with_variant(sa.JSON(), "sqlite")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "form_templates",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("body", JSONType, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_form_templates_is_active", "form_templates", ["is_active"])

    op.create_table(
        "patients",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("assigned_doctor", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("body", JSONType, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_patients_assigned_doctor", "patients", ["assigned_doctor"])

    op.create_table(
        "form_responses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("form_template_id", sa.String(length=36), nullable=False),
        sa.Column("patient_id", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="incomplete"),
        sa.Column("body", JSONType, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_form_responses_form_template_id", "form_responses", ["form_template_id"])
    op.create_index("ix_form_responses_patient_id", "form_responses", ["patient_id"])
    op.create_index("ix_form_responses_status", "form_responses", ["status"])

    op.create_table(
        "intake_forms",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("patient_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="incomplete"),
        sa.Column("body", JSONType, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_intake_forms_patient_id", "intake_forms", ["patient_id"])
    op.create_index("ix_intake_forms_status", "intake_forms", ["status"])

    op.create_table(
        "pending_merges",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("patient_id", sa.String(length=36), nullable=False),
        sa.Column("source_kind", sa.String(length=32), nullable=False),
        sa.Column("source_id", sa.String(length=36), nullable=False),
        sa.Column("canonical", JSONType, nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pending_merges_patient_id", "pending_merges", ["patient_id"])
    op.create_index("ix_pending_merges_source_id", "pending_merges", ["source_id"])
    op.create_index("ix_pending_merges_created_at", "pending_merges", ["created_at"])
    op.create_index("ix_pending_merges_applied_at", "pending_merges", ["applied_at"])


def downgrade() -> None:
    op.drop_table("pending_merges")
    op.drop_table("intake_forms")
    op.drop_table("form_responses")
    op.drop_table("patients")
    op.drop_table("form_templates")
