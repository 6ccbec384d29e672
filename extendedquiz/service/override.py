from __future__ import annotations

import logging
import typing as t

import extendedquiz.storage as storage
from extendedquiz.core import di
from extendedquiz.model import GroupID, OverrideID, Quiz, QuizOverride, UserID
from extendedquiz.rules import PreconditionViolation
from extendedquiz.rules.access import OVERRIDE_FIELDS
from extendedquiz.storage import Session

from .attempt import update_open_attempts

logger = logging.getLogger(__name__)


class OverrideParams(t.TypedDict, total=False):
    user_id: UserID | None
    group_id: GroupID | None
    time_open: int | None
    time_close: int | None
    time_limit: int | None
    max_attempts: int | None
    password: str | None


def save_override(
    quiz: Quiz,
    params: OverrideParams,
    override_id: OverrideID | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> QuizOverride:
    """
    Create an override, or edit `override_id`. Values equal to the quiz's
    own setting are stored as None. When the target user or group already
    has another override, its values fill whatever this one leaves unset
    and it is replaced.
    """
    user_id, group_id = params.get("user_id"), params.get("group_id")
    if (user_id is None) == (group_id is None):
        raise PreconditionViolation("override must target exactly one of user_id or group_id")

    values: dict[str, t.Any] = {}
    for field in OVERRIDE_FIELDS:
        value = params.get(field)
        values[field] = None if value == getattr(quiz, field) else value

    existing: QuizOverride | None = None
    if override_id is not None:
        existing = storage.override.get(override_id, session=session)
        if existing is None or existing.quiz_id != quiz.quiz_id:
            raise KeyError(f"Override {override_id} not found")

    target_changed = existing is None or (existing.user_id, existing.group_id) != (user_id, group_id)
    if target_changed:
        previous = storage.override.find(
            quiz_id=quiz.quiz_id,
            **({"user_id": user_id} if user_id is not None else {"group_id": group_id}),
            session=session,
        )
        for old in previous:
            if existing is not None and old.override_id == existing.override_id:
                continue
            for field in OVERRIDE_FIELDS:
                if values[field] is None:
                    values[field] = getattr(old, field)
            storage.override.delete(old.override_id, session=session)
            logger.debug(
                "replacing override",
                extra={"quiz_id": quiz.quiz_id, "override_id": old.override_id},
            )

    if all(v is None for v in values.values()):
        raise PreconditionViolation("override does not change any quiz setting")

    if existing is not None:
        storage.override.update(existing.override_id, user_id=user_id, group_id=group_id, **values, session=session)
        saved = storage.override.get(existing.override_id, session=session)
        assert saved is not None
    else:
        saved = storage.override.create(
            {"quiz_id": quiz.quiz_id, "user_id": user_id, "group_id": group_id, **values}, session=session
        )

    logger.info(
        "saved override",
        extra={
            "quiz_id": quiz.quiz_id,
            "override_id": saved.override_id,
            "user_id": user_id,
            "group_id": group_id,
        },
    )
    update_open_attempts(quiz_id=quiz.quiz_id, session=session)
    return saved


def delete_override(
    quiz: Quiz, override_id: OverrideID, *, session: Session = di.Provide["storage.persistent.session"]
) -> None:
    """
    Raises:
        KeyError: If the quiz has no such override
    """
    override = storage.override.get(override_id, session=session)
    if override is None or override.quiz_id != quiz.quiz_id:
        raise KeyError(f"Override {override_id} not found")

    storage.override.delete(override_id, session=session)
    logger.info("deleted override", extra={"quiz_id": quiz.quiz_id, "override_id": override_id})
    update_open_attempts(quiz_id=quiz.quiz_id, session=session)


def delete_all_overrides(quiz: Quiz, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    deleted = storage.override.delete_all(quiz_id=quiz.quiz_id, session=session)
    if deleted:
        logger.info("deleted all overrides", extra={"quiz_id": quiz.quiz_id, "count": deleted})
        update_open_attempts(quiz_id=quiz.quiz_id, session=session)
    return deleted
