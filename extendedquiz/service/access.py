from __future__ import annotations

import extendedquiz.storage as storage
from extendedquiz.core import di
from extendedquiz.model import AttemptState, EffectiveAccess, Quiz, UserID
from extendedquiz.rules import attempt_allowed, resolve_effective_access
from extendedquiz.storage import Session


def effective_access(
    quiz: Quiz, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> EffectiveAccess:
    """Fetch the user's groups and the relevant overrides, then resolve"""
    group_ids = storage.group.group_ids(user_id, session=session)
    overrides = storage.override.find(quiz_id=quiz.quiz_id, user_id=user_id, group_ids=group_ids, session=session)
    return resolve_effective_access(quiz, user_id, group_ids, overrides)


def can_start_attempt(
    quiz: Quiz, user_id: UserID, *, session: Session = di.Provide["storage.persistent.session"]
) -> bool:
    access = effective_access(quiz, user_id, session=session)
    finished = storage.attempt.count(
        quiz_id=quiz.quiz_id,
        user_id=user_id,
        states=[AttemptState.Finished],
        is_preview=False,
        session=session,
    )
    return attempt_allowed(access, finished)
