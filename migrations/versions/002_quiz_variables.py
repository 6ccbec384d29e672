"""Quiz variables, concatenated variables and question argument bindings

Revision ID: 002_quiz_variables
Revises: 001_initial
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Float, Integer, JSON, String

# revision identifiers, used by Alembic.
revision: str = "002_quiz_variables"
down_revision: str | None = "001_initial"
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "quiz_vars",
        Column("var_id", String(22), primary_key=True),
        Column("quiz_id", String(22), ForeignKey("quizzes.quiz_id"), nullable=False),
        Column("name", String, nullable=False),
        Column("nvalues", Integer, nullable=False, server_default="1"),
        Column("minimum", Float, nullable=False, server_default="0"),
        Column("maximum", Float, nullable=False, server_default="0"),
        Column("value_increment", Float, nullable=False, server_default="1"),
        UniqueConstraint("quiz_id", "name"),
    )

    # var_names lists quiz_vars.name values of the same quiz
    op.create_table(
        "quiz_concat_vars",
        Column("concat_var_id", String(22), primary_key=True),
        Column("quiz_id", String(22), ForeignKey("quizzes.quiz_id"), nullable=False),
        Column("name", String, nullable=False),
        Column("readable_name", String, nullable=False),
        Column("var_names", JSON, nullable=False),
        UniqueConstraint("quiz_id", "name"),
    )

    # exactly one of var_id / concat_var_id
    op.create_table(
        "quiz_var_args",
        Column("quiz_id", String(22), ForeignKey("quizzes.quiz_id"), primary_key=True),
        Column("arg_id", String, primary_key=True),
        Column("var_id", String(22), ForeignKey("quiz_vars.var_id"), nullable=True),
        Column("concat_var_id", String(22), ForeignKey("quiz_concat_vars.concat_var_id"), nullable=True, index=True),
    )


def downgrade() -> None:
    op.drop_table("quiz_var_args")
    op.drop_table("quiz_concat_vars")
    op.drop_table("quiz_vars")
