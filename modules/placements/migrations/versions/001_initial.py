"""001_initial — Create placement tables.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- actors ---
    op.create_table(
        "students",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("year_of_study", sa.Integer(), nullable=False),
        sa.Column("major", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "company_representatives",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("company_name", sa.Text(), nullable=False),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("position", sa.Text(), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "career_center_staff",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("department", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- internships ---
    op.create_table(
        "internships",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("level", sa.String(16), nullable=False),
        sa.Column("preferred_major", sa.Text(), nullable=False),
        sa.Column("opening_date", sa.Date(), nullable=True),
        sa.Column("closing_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("company_name", sa.Text(), nullable=False),
        sa.Column("owner_rep_id", sa.String(255), nullable=False),
        sa.Column("slots", sa.Integer(), nullable=False),
        sa.Column("visible", sa.Boolean(), nullable=False),
        sa.Column("confirmed_offers", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_internships_status", "internships", ["status"])
    op.create_index("ix_internships_owner", "internships", ["owner_rep_id"])

    # --- applications ---
    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("student_id", sa.String(64), nullable=False),
        sa.Column("internship_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("withdrawal_requested", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_student", "applications", ["student_id"])
    op.create_index("ix_applications_internship", "applications", ["internship_id"])
    op.create_index("ix_applications_status", "applications", ["status"])

    # --- bookkeeping ---
    op.create_table(
        "id_counters",
        sa.Column("entity", sa.String(32), nullable=False),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("entity"),
    )
    op.create_table(
        "status_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity", sa.String(32), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("field_changed", sa.Text(), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("changed_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_history_entity", "status_history", ["entity", "entity_id"])
    op.create_index("ix_history_changed_at", "status_history", ["changed_at"])


def downgrade() -> None:
    op.drop_table("status_history")
    op.drop_table("id_counters")
    op.drop_table("applications")
    op.drop_table("internships")
    op.drop_table("career_center_staff")
    op.drop_table("company_representatives")
    op.drop_table("students")
