from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from extendedquiz.core import di
from extendedquiz.lib import NotSet
from extendedquiz.model import Attempt, AttemptID, AttemptState, GroupID, QuizID, UserID

from . import Session
from .table import quiz_attempts, quiz_overrides


def get(attempt_id: AttemptID, *, session: Session = di.Provide["storage.persistent.session"]) -> Attempt | None:
    stmt = sqla.select(quiz_attempts.__table__).where(quiz_attempts.attempt_id == attempt_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Attempt(**row) if row else None


def find(
    *,
    quiz_id: QuizID | None = None,
    user_id: UserID | None = None,
    states: t.Collection[AttemptState] | None = None,
    is_preview: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Attempt, ...]:
    """Attempts ordered by user, then attempt number"""
    stmt = sqla.select(quiz_attempts.__table__).order_by(quiz_attempts.user_id, quiz_attempts.attempt_number)
    if quiz_id is not None:
        stmt = stmt.where(quiz_attempts.quiz_id == quiz_id)
    if user_id is not None:
        stmt = stmt.where(quiz_attempts.user_id == user_id)
    if states is not None:
        stmt = stmt.where(quiz_attempts.state.in_([s.value for s in states]))
    if is_preview is not None:
        stmt = stmt.where(quiz_attempts.is_preview == is_preview)
    rows = session.execute(stmt).mappings().all()
    return tuple(Attempt(**row) for row in rows)


def find_open(
    *,
    quiz_id: QuizID | None = None,
    user_id: UserID | None = None,
    group_id: GroupID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Attempt, ...]:
    """
    In-progress and overdue attempts. group_id selects the attempts at every
    quiz that has an override for that group.
    """
    stmt = (
        sqla
        .select(quiz_attempts.__table__)
        .where(quiz_attempts.state.in_([AttemptState.InProgress.value, AttemptState.Overdue.value]))
        .order_by(quiz_attempts.quiz_id, quiz_attempts.user_id, quiz_attempts.attempt_number)
    )
    if quiz_id is not None:
        stmt = stmt.where(quiz_attempts.quiz_id == quiz_id)
    if user_id is not None:
        stmt = stmt.where(quiz_attempts.user_id == user_id)
    if group_id is not None:
        overridden = sqla.select(quiz_overrides.quiz_id).where(quiz_overrides.group_id == group_id)
        stmt = stmt.where(quiz_attempts.quiz_id.in_(overridden))
    rows = session.execute(stmt).mappings().all()
    return tuple(Attempt(**row) for row in rows)


def count(
    *,
    quiz_id: QuizID,
    user_id: UserID | None = None,
    states: t.Collection[AttemptState] | None = None,
    is_preview: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    stmt = sqla.select(sqla.func.count()).select_from(quiz_attempts).where(quiz_attempts.quiz_id == quiz_id)
    if user_id is not None:
        stmt = stmt.where(quiz_attempts.user_id == user_id)
    if states is not None:
        stmt = stmt.where(quiz_attempts.state.in_([s.value for s in states]))
    if is_preview is not None:
        stmt = stmt.where(quiz_attempts.is_preview == is_preview)
    return session.execute(stmt).scalar_one()


def next_attempt_number(
    quiz_id: QuizID, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> int:
    stmt = sqla.select(sqla.func.max(quiz_attempts.attempt_number)).where(
        quiz_attempts.quiz_id == quiz_id, quiz_attempts.user_id == user_id
    )
    last = session.execute(stmt).scalar_one_or_none()
    return (last or 0) + 1


def create(params: AttemptCreateParams, *, session: Session = di.Provide["storage.persistent.session"]) -> Attempt:
    attempt_id = AttemptID()
    values: dict[str, t.Any] = dict(params)
    if "attempt_number" not in values:
        values["attempt_number"] = next_attempt_number(params["quiz_id"], params["user_id"], session=session)
    values["state"] = values.get("state", AttemptState.InProgress).value
    stmt = sqla.insert(quiz_attempts).values(attempt_id=attempt_id, **values)
    session.execute(stmt)
    session.flush()
    result = get(attempt_id, session=session)
    assert result is not None
    return result


def update(
    attempt_id: AttemptID,
    *,
    state: AttemptState | NotSet = NotSet(),
    sum_grades: float | None | NotSet = NotSet(),
    time_finish: int | NotSet = NotSet(),
    time_check_state: int | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """
    Raises:
        KeyError: If attempt_id does not correspond to an attempt
    """
    values: dict[str, t.Any] = {}
    if not isinstance(state, NotSet):
        values["state"] = state.value
    if not isinstance(sum_grades, NotSet):
        values["sum_grades"] = sum_grades
    if not isinstance(time_finish, NotSet):
        values["time_finish"] = time_finish
    if not isinstance(time_check_state, NotSet):
        values["time_check_state"] = time_check_state

    if not values:
        values["attempt_id"] = attempt_id
    stmt = sqla.update(quiz_attempts).where(quiz_attempts.attempt_id == attempt_id).values(**values)

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Attempt {attempt_id} not found")

    session.flush()


def delete(attempt_id: AttemptID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    stmt = sqla.delete(quiz_attempts).where(quiz_attempts.attempt_id == attempt_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]


def delete_all(quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    stmt = sqla.delete(quiz_attempts).where(quiz_attempts.quiz_id == quiz_id)
    result = session.execute(stmt)
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]


class AttemptCreateParams(t.TypedDict, total=False):
    quiz_id: t.Required[QuizID]
    user_id: t.Required[UserID]
    attempt_number: int
    state: AttemptState
    sum_grades: float | None
    is_preview: bool
    time_start: int
    time_finish: int
    time_check_state: int | None
