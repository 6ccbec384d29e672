from __future__ import annotations

import sqlalchemy as sqla

from extendedquiz.core import di
from extendedquiz.model import GroupID, GroupMembership, UserID

from . import Session
from .table import group_memberships


def find(
    *,
    group_id: GroupID | None = None,
    user_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GroupMembership, ...]:
    stmt = sqla.select(group_memberships.__table__).order_by(group_memberships.group_id, group_memberships.user_id)
    if group_id is not None:
        stmt = stmt.where(group_memberships.group_id == group_id)
    if user_id is not None:
        stmt = stmt.where(group_memberships.user_id == user_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(GroupMembership(**row) for row in rows)


def group_ids(user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]) -> set[GroupID]:
    stmt = sqla.select(group_memberships.group_id).where(group_memberships.user_id == user_id)
    return set(session.execute(stmt).scalars().all())


def add(
    group_id: GroupID, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> GroupMembership:
    stmt = sqla.insert(group_memberships).values(group_id=group_id, user_id=user_id)
    session.execute(stmt)
    session.flush()
    (membership,) = find(group_id=group_id, user_id=user_id, session=session)
    return membership


def remove(group_id: GroupID, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    stmt = sqla.delete(group_memberships).where(
        group_memberships.group_id == group_id, group_memberships.user_id == user_id
    )
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]


def remove_all(group_id: GroupID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    stmt = sqla.delete(group_memberships).where(group_memberships.group_id == group_id)
    result = session.execute(stmt)
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]
