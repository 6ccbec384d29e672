"""Initial schema: quizzes, overrides, attempts, grades and group memberships

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy import func as f
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, DateTime, Float, Integer, String

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def upgrade() -> None:
    # Quizzes; times are epoch seconds, 0 means "no date" / "unlimited"
    op.create_table(
        "quizzes",
        Column("quiz_id", String(22), primary_key=True),
        Column("name", String, nullable=False),
        Column("time_open", Integer, nullable=False, server_default="0"),
        Column("time_close", Integer, nullable=False, server_default="0"),
        Column("time_limit", Integer, nullable=False, server_default="0"),
        Column("max_attempts", Integer, nullable=False, server_default="0"),
        Column("password", String, nullable=False, server_default=""),
        Column("grace_period", Integer, nullable=False, server_default="0"),
        Column("grade_method", String, nullable=False, server_default="highest"),
        Column("max_grade", Float, nullable=False, server_default="10"),
        Column("sum_grades", Float, nullable=False, server_default="0"),
        Column("decimal_points", Integer, nullable=False, server_default="2"),
        Column("question_decimal_points", Integer, nullable=False, server_default="-1"),
        Column("review_marks", Integer, nullable=False, server_default="0"),
        Column("visible", Boolean, nullable=False, server_default="true"),
        Column("create_time", DateTime, server_default=f.now(), nullable=False),
        Column("update_time", DateTime, server_default=f.now(), onupdate=f.now(), nullable=False),
    )

    # Overrides; exactly one of user_id / group_id, NULL fields fall through
    op.create_table(
        "quiz_overrides",
        Column("override_id", String(22), primary_key=True),
        Column("quiz_id", String(22), ForeignKey("quizzes.quiz_id"), nullable=False),
        Column("user_id", String(22), nullable=True, index=True),
        Column("group_id", String(22), nullable=True, index=True),
        Column("time_open", Integer, nullable=True),
        Column("time_close", Integer, nullable=True),
        Column("time_limit", Integer, nullable=True),
        Column("max_attempts", Integer, nullable=True),
        Column("password", String, nullable=True),
        Column("create_time", DateTime, server_default=f.now(), nullable=False),
        UniqueConstraint("quiz_id", "user_id"),
        UniqueConstraint("quiz_id", "group_id"),
    )

    # Attempts
    op.create_table(
        "quiz_attempts",
        Column("attempt_id", String(22), primary_key=True),
        Column("quiz_id", String(22), ForeignKey("quizzes.quiz_id"), nullable=False),
        Column("user_id", String(22), nullable=False, index=True),
        Column("attempt_number", Integer, nullable=False),
        Column("state", String, nullable=False, server_default="inprogress"),
        Column("sum_grades", Float, nullable=True),
        Column("is_preview", Boolean, nullable=False, server_default="false"),
        Column("time_start", Integer, nullable=False, server_default="0"),
        Column("time_finish", Integer, nullable=False, server_default="0"),
        Column("time_check_state", Integer, nullable=True, index=True),
        UniqueConstraint("quiz_id", "user_id", "attempt_number"),
    )

    # Final grades, one per (quiz, user)
    op.create_table(
        "quiz_grades",
        Column("quiz_id", String(22), ForeignKey("quizzes.quiz_id"), primary_key=True),
        Column("user_id", String(22), primary_key=True),
        Column("grade", Float, nullable=False),
        Column("time_modified", Integer, nullable=False),
    )

    # Group memberships, mirrored from the host
    op.create_table(
        "group_memberships",
        Column("group_id", String(22), primary_key=True),
        Column("user_id", String(22), primary_key=True),
        Column("create_time", DateTime, server_default=f.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("group_memberships")
    op.drop_table("quiz_grades")
    op.drop_table("quiz_attempts")
    op.drop_table("quiz_overrides")
    op.drop_table("quizzes")
