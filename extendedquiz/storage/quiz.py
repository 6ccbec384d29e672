from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from extendedquiz.core import di
from extendedquiz.lib import NotSet
from extendedquiz.model import GradeMethod, Quiz, QuizID

from . import Session
from .table import quizzes


def get(quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]) -> Quiz | None:
    stmt = sqla.select(quizzes.__table__).where(quizzes.quiz_id == quiz_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Quiz(**row) if row else None


def find(
    *,
    quiz_ids: t.Collection[QuizID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Quiz, ...]:
    stmt = sqla.select(quizzes.__table__).order_by(quizzes.create_time, quizzes.quiz_id)
    if quiz_ids is not None:
        stmt = stmt.where(quizzes.quiz_id.in_(quiz_ids))
    rows = session.execute(stmt).mappings().all()
    return tuple(Quiz(**row) for row in rows)


def create(params: QuizCreateParams, *, session: Session = di.Provide["storage.persistent.session"]) -> Quiz:
    quiz_id = QuizID()
    values: dict[str, t.Any] = dict(params)
    if "grade_method" in values:
        values["grade_method"] = values["grade_method"].value
    stmt = sqla.insert(quizzes).values(quiz_id=quiz_id, **values)
    session.execute(stmt)
    session.flush()
    result = get(quiz_id, session=session)
    assert result is not None
    return result


def update(
    quiz_id: QuizID,
    *,
    name: str | NotSet = NotSet(),
    time_open: int | NotSet = NotSet(),
    time_close: int | NotSet = NotSet(),
    time_limit: int | NotSet = NotSet(),
    max_attempts: int | NotSet = NotSet(),
    password: str | NotSet = NotSet(),
    grace_period: int | NotSet = NotSet(),
    grade_method: GradeMethod | NotSet = NotSet(),
    max_grade: float | NotSet = NotSet(),
    sum_grades: float | NotSet = NotSet(),
    decimal_points: int | NotSet = NotSet(),
    question_decimal_points: int | NotSet = NotSet(),
    review_marks: int | NotSet = NotSet(),
    visible: bool | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """
    Raises:
        KeyError: If quiz_id does not correspond to a quiz
    """
    given = {
        "name": name,
        "time_open": time_open,
        "time_close": time_close,
        "time_limit": time_limit,
        "max_attempts": max_attempts,
        "password": password,
        "grace_period": grace_period,
        "max_grade": max_grade,
        "sum_grades": sum_grades,
        "decimal_points": decimal_points,
        "question_decimal_points": question_decimal_points,
        "review_marks": review_marks,
        "visible": visible,
    }
    values: dict[str, t.Any] = {k: v for k, v in given.items() if not isinstance(v, NotSet)}
    if not isinstance(grade_method, NotSet):
        values["grade_method"] = grade_method.value

    if not values:
        # No-op update to verify the quiz exists
        values["quiz_id"] = quiz_id
    stmt = sqla.update(quizzes).where(quizzes.quiz_id == quiz_id).values(**values)

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Quiz {quiz_id} not found")

    session.flush()


def delete(quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    stmt = sqla.delete(quizzes).where(quizzes.quiz_id == quiz_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]


class QuizCreateParams(t.TypedDict, total=False):
    name: t.Required[str]
    time_open: int
    time_close: int
    time_limit: int
    max_attempts: int
    password: str
    grace_period: int
    grade_method: GradeMethod
    max_grade: float
    sum_grades: float
    decimal_points: int
    question_decimal_points: int
    review_marks: int
    visible: bool
