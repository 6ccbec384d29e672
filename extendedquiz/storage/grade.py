from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from extendedquiz.core import di
from extendedquiz.model import AttemptState, GradeMethod, GradeRecord, QuizID, UserID

from . import Session
from .table import quiz_attempts, quiz_grades


def get(
    quiz_id: QuizID, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> GradeRecord | None:
    stmt = sqla.select(quiz_grades.__table__).where(quiz_grades.quiz_id == quiz_id, quiz_grades.user_id == user_id)
    row = session.execute(stmt).mappings().one_or_none()
    return GradeRecord(**row) if row else None


def find(
    *,
    quiz_id: QuizID,
    user_ids: t.Collection[UserID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeRecord, ...]:
    stmt = sqla.select(quiz_grades.__table__).where(quiz_grades.quiz_id == quiz_id).order_by(quiz_grades.user_id)
    if user_ids is not None:
        stmt = stmt.where(quiz_grades.user_id.in_(user_ids))
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeRecord(**row) for row in rows)


def create(
    quiz_id: QuizID,
    user_id: UserID,
    *,
    grade: float,
    time_modified: int,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeRecord:
    stmt = sqla.insert(quiz_grades).values(
        quiz_id=quiz_id, user_id=user_id, grade=grade, time_modified=time_modified
    )
    session.execute(stmt)
    session.flush()
    result = get(quiz_id, user_id, session=session)
    assert result is not None
    return result


def update(
    quiz_id: QuizID,
    user_id: UserID,
    *,
    grade: float,
    time_modified: int,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """
    Raises:
        KeyError: If the user has no grade record for the quiz
    """
    stmt = (
        sqla
        .update(quiz_grades)
        .where(quiz_grades.quiz_id == quiz_id, quiz_grades.user_id == user_id)
        .values(grade=grade, time_modified=time_modified)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Grade for {user_id} at {quiz_id} not found")

    session.flush()


def delete(
    quiz_id: QuizID, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> bool:
    stmt = sqla.delete(quiz_grades).where(quiz_grades.quiz_id == quiz_id, quiz_grades.user_id == user_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]


def delete_all(quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    stmt = sqla.delete(quiz_grades).where(quiz_grades.quiz_id == quiz_id)
    result = session.execute(stmt)
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]


def scale_all(
    quiz_id: QuizID,
    factor: float,
    *,
    time_modified: int,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Multiply every grade recorded for the quiz by `factor`"""
    stmt = (
        sqla
        .update(quiz_grades)
        .where(quiz_grades.quiz_id == quiz_id)
        .values(grade=quiz_grades.grade * factor, time_modified=time_modified)
    )
    result = session.execute(stmt)
    session.flush()
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]


def aggregate_raw_grades(
    quiz_id: QuizID,
    method: GradeMethod,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> dict[UserID, float | None]:
    """
    Unscaled best grade of every user with a finished non-preview attempt or
    an existing grade record, as one set-based query. Users left with no
    eligible attempt map to None.
    """
    eligible = (
        sqla
        .select(quiz_attempts.user_id, quiz_attempts.attempt_number, quiz_attempts.sum_grades)
        .where(
            quiz_attempts.quiz_id == quiz_id,
            quiz_attempts.state == AttemptState.Finished.value,
            quiz_attempts.is_preview == sqla.false(),
        )
        .subquery("eligible")
    )
    users = sqla.union(
        sqla.select(eligible.c.user_id),
        sqla.select(quiz_grades.user_id).where(quiz_grades.quiz_id == quiz_id),
    ).subquery("users")

    match method:
        case GradeMethod.First | GradeMethod.Last:
            pick = sqla.func.min if method is GradeMethod.First else sqla.func.max
            bound = (
                sqla
                .select(eligible.c.user_id, pick(eligible.c.attempt_number).label("attempt_number"))
                .group_by(eligible.c.user_id)
                .subquery("bound")
            )
            per_user = (
                sqla
                .select(eligible.c.user_id, eligible.c.sum_grades.label("raw"))
                .join(
                    bound,
                    sqla.and_(
                        bound.c.user_id == eligible.c.user_id,
                        bound.c.attempt_number == eligible.c.attempt_number,
                    ),
                )
                .subquery("per_user")
            )
        case GradeMethod.Average:
            per_user = (
                sqla
                .select(eligible.c.user_id, sqla.func.avg(eligible.c.sum_grades).label("raw"))
                .group_by(eligible.c.user_id)
                .subquery("per_user")
            )
        case _:
            per_user = (
                sqla
                .select(eligible.c.user_id, sqla.func.max(eligible.c.sum_grades).label("raw"))
                .group_by(eligible.c.user_id)
                .subquery("per_user")
            )

    stmt = sqla.select(users.c.user_id, per_user.c.raw).select_from(
        users.outerjoin(per_user, per_user.c.user_id == users.c.user_id)
    )
    rows = session.execute(stmt).all()
    return {user_id: (float(raw) if raw is not None else None) for user_id, raw in rows}
