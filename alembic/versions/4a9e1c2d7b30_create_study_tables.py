"""Create users, subjects, study_blocks and schedule_preferences tables

Revision ID: 4a9e1c2d7b30
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4a9e1c2d7b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("default_block_duration", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("preferred_blocks_per_day", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("global_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("global_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_sync_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("icon", sa.String(), nullable=False),
        sa.Column("confidence", sa.Integer(), nullable=False),
        sa.Column("block_duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_subjects_user_id"), "subjects", ["user_id"], unique=False)

    op.create_table(
        "study_blocks",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_id", sa.String(), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_name", sa.String(), nullable=False),
        sa.Column("subject_icon", sa.String(), nullable=False),
        sa.Column("total_blocks_for_subject", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("block_number", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("is_custom_block", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_study_blocks_user_id"), "study_blocks", ["user_id"], unique=False)
    op.create_index(op.f("ix_study_blocks_subject_id"), "study_blocks", ["subject_id"], unique=False)
    op.create_index(op.f("ix_study_blocks_is_completed"), "study_blocks", ["is_completed"], unique=False)
    op.create_index("ix_study_blocks_user_date", "study_blocks", ["user_id", "scheduled_date"], unique=False)

    op.create_table(
        "schedule_preferences",
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("schedule_horizon_days", sa.Integer(), nullable=False, server_default="21"),
        sa.Column("blocks_per_weekday", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("blocks_per_weekend", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("default_block_duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("subject_grouping", sa.String(), nullable=False, server_default="balanced"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("schedule_preferences")
    op.drop_index("ix_study_blocks_user_date", table_name="study_blocks")
    op.drop_index(op.f("ix_study_blocks_is_completed"), table_name="study_blocks")
    op.drop_index(op.f("ix_study_blocks_subject_id"), table_name="study_blocks")
    op.drop_index(op.f("ix_study_blocks_user_id"), table_name="study_blocks")
    op.drop_table("study_blocks")
    op.drop_index(op.f("ix_subjects_user_id"), table_name="subjects")
    op.drop_table("subjects")
    op.drop_table("users")
