"""Reactions to changes in the host's groups."""

from __future__ import annotations

import logging

import extendedquiz.storage as storage
from extendedquiz.core import di
from extendedquiz.model import GroupID, UserID
from extendedquiz.storage import Session

from .attempt import update_open_attempts

logger = logging.getLogger(__name__)


def group_membership_changed(
    user_id: UserID, group_id: GroupID, *, session: Session = di.Provide["storage.persistent.session"]
) -> int:
    return update_open_attempts(user_id=user_id, group_id=group_id, session=session)


def add_member(
    group_id: GroupID, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> None:
    storage.group.add(group_id, user_id, session=session)
    group_membership_changed(user_id, group_id, session=session)


def remove_member(
    group_id: GroupID, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> None:
    if storage.group.remove(group_id, user_id, session=session):
        group_membership_changed(user_id, group_id, session=session)


def group_deleted(group_id: GroupID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    """
    Drop the group's memberships and overrides, then bring open attempts
    at the affected quizzes up to date. Returns the number of overrides
    deleted.
    """
    overrides = storage.override.find(group_id=group_id, session=session)
    quiz_ids = {o.quiz_id for o in overrides}

    storage.group.remove_all(group_id, session=session)
    deleted = storage.override.delete_all(group_id=group_id, session=session)
    for quiz_id in sorted(quiz_ids):
        update_open_attempts(quiz_id=quiz_id, session=session)

    logger.info(
        "deleted group",
        extra={
            "group_id": group_id,
            "overrides": deleted,
            "quizzes": sorted(quiz_ids),
        },
    )
    return deleted
