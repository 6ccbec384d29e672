from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from extendedquiz.core import di
from extendedquiz.lib import NotSet
from extendedquiz.model import GroupID, OverrideID, QuizID, QuizOverride, UserID

from . import Session
from .table import quiz_overrides


def get(override_id: OverrideID, *, session: Session = di.Provide["storage.persistent.session"]) -> QuizOverride | None:
    stmt = sqla.select(quiz_overrides.__table__).where(quiz_overrides.override_id == override_id)
    row = session.execute(stmt).mappings().one_or_none()
    return QuizOverride(**row) if row else None


def find(
    *,
    quiz_id: QuizID | None = None,
    user_id: UserID | None = None,
    group_id: GroupID | None = None,
    group_ids: t.Collection[GroupID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[QuizOverride, ...]:
    """
    Overrides matching every given criterion; when both user_id and
    group_ids are given, overrides for the user or any of the groups
    """
    stmt = sqla.select(quiz_overrides.__table__).order_by(quiz_overrides.create_time, quiz_overrides.override_id)
    if quiz_id is not None:
        stmt = stmt.where(quiz_overrides.quiz_id == quiz_id)
    if group_id is not None:
        stmt = stmt.where(quiz_overrides.group_id == group_id)
    if user_id is not None and group_ids is not None:
        stmt = stmt.where(
            sqla.or_(quiz_overrides.user_id == user_id, quiz_overrides.group_id.in_(group_ids))
        )
    elif user_id is not None:
        stmt = stmt.where(quiz_overrides.user_id == user_id)
    elif group_ids is not None:
        stmt = stmt.where(quiz_overrides.group_id.in_(group_ids))
    rows = session.execute(stmt).mappings().all()
    return tuple(QuizOverride(**row) for row in rows)


def create(
    params: OverrideCreateParams, *, session: Session = di.Provide["storage.persistent.session"]
) -> QuizOverride:
    # validate before touching the table
    override = QuizOverride(override_id=OverrideID(), **params)
    values = {field: getattr(override, field) for field in QuizOverride.model_fields}
    stmt = sqla.insert(quiz_overrides).values(**values)
    session.execute(stmt)
    session.flush()
    result = get(override.override_id, session=session)
    assert result is not None
    return result


def update(
    override_id: OverrideID,
    *,
    user_id: UserID | None | NotSet = NotSet(),
    group_id: GroupID | None | NotSet = NotSet(),
    time_open: int | None | NotSet = NotSet(),
    time_close: int | None | NotSet = NotSet(),
    time_limit: int | None | NotSet = NotSet(),
    max_attempts: int | None | NotSet = NotSet(),
    password: str | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """
    Raises:
        KeyError: If override_id does not correspond to an override
    """
    given = {
        "user_id": user_id,
        "group_id": group_id,
        "time_open": time_open,
        "time_close": time_close,
        "time_limit": time_limit,
        "max_attempts": max_attempts,
        "password": password,
    }
    values: dict[str, t.Any] = {k: v for k, v in given.items() if not isinstance(v, NotSet)}
    if not values:
        values["override_id"] = override_id
    stmt = sqla.update(quiz_overrides).where(quiz_overrides.override_id == override_id).values(**values)

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Override {override_id} not found")

    session.flush()


def delete(override_id: OverrideID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    stmt = sqla.delete(quiz_overrides).where(quiz_overrides.override_id == override_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]


def delete_all(
    *,
    quiz_id: QuizID | None = None,
    group_id: GroupID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    if quiz_id is None and group_id is None:
        raise ValueError("refusing to delete every override, give quiz_id or group_id")
    stmt = sqla.delete(quiz_overrides)
    if quiz_id is not None:
        stmt = stmt.where(quiz_overrides.quiz_id == quiz_id)
    if group_id is not None:
        stmt = stmt.where(quiz_overrides.group_id == group_id)
    result = session.execute(stmt)
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]


class OverrideCreateParams(t.TypedDict, total=False):
    quiz_id: t.Required[QuizID]
    user_id: UserID | None
    group_id: GroupID | None
    time_open: int | None
    time_close: int | None
    time_limit: int | None
    max_attempts: int | None
    password: str | None
