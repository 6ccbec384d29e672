from __future__ import annotations

import logging

import extendedquiz.storage as storage
from extendedquiz.core import di
from extendedquiz.core.provider import epoch, TimestampProvider
from extendedquiz.model import Attempt, AttemptID, AttemptState, GroupID, Quiz, QuizID, UserID
from extendedquiz.rules import compute_time_check_state, PreconditionViolation, resolve_effective_access
from extendedquiz.storage import Session

from . import grading
from .access import can_start_attempt, effective_access
from .gradebook import Gradebook
from .notification import AttemptEvent, Notifier

logger = logging.getLogger(__name__)


def get_quiz(quiz_id: QuizID, *, session: Session) -> Quiz:
    quiz = storage.quiz.get(quiz_id, session=session)
    if quiz is None:
        raise KeyError(f"Quiz {quiz_id} not found")
    return quiz


def get_attempt(attempt_id: AttemptID, *, session: Session) -> Attempt:
    attempt = storage.attempt.get(attempt_id, session=session)
    if attempt is None:
        raise KeyError(f"Attempt {attempt_id} not found")
    return attempt


def start_attempt(
    quiz: Quiz,
    user_id: UserID,
    *,
    is_preview: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Attempt:
    if not is_preview and not can_start_attempt(quiz, user_id, session=session):
        raise PreconditionViolation(f"{user_id} has no attempts left at {quiz.quiz_id}")

    now = epoch(utcnow)
    attempt = storage.attempt.create(
        {
            "quiz_id": quiz.quiz_id,
            "user_id": user_id,
            "is_preview": is_preview,
            "time_start": now,
        },
        session=session,
    )
    access = effective_access(quiz, user_id, session=session)
    time_check_state = compute_time_check_state(attempt, access, quiz.grace_period)
    if time_check_state is not None:
        storage.attempt.update(attempt.attempt_id, time_check_state=time_check_state, session=session)
        attempt = attempt.model_copy(update={"time_check_state": time_check_state})

    logger.info(
        "started attempt",
        extra={
            "quiz_id": quiz.quiz_id,
            "user_id": user_id,
            "attempt_id": attempt.attempt_id,
            "attempt_number": attempt.attempt_number,
            "preview": is_preview,
        },
    )
    return attempt


def finish_attempt(
    attempt_id: AttemptID,
    sum_grades: float | None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
    notifier: Notifier = di.Provide["notifier"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Attempt:
    attempt = get_attempt(attempt_id, session=session)
    if not attempt.is_open:
        raise PreconditionViolation(f"cannot finish attempt {attempt_id} in state {attempt.state.value}")

    storage.attempt.update(
        attempt_id,
        state=AttemptState.Finished,
        sum_grades=sum_grades,
        time_finish=epoch(utcnow),
        time_check_state=None,
        session=session,
    )
    attempt = get_attempt(attempt_id, session=session)
    quiz = get_quiz(attempt.quiz_id, session=session)

    if not attempt.is_preview:
        grading.save_best_grade(quiz, attempt.user_id, session=session, gradebook=gradebook, utcnow=utcnow)
    notifier.notify(AttemptEvent.Submitted, quiz, attempt)
    return attempt


def mark_overdue(
    attempt_id: AttemptID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    notifier: Notifier = di.Provide["notifier"],
) -> Attempt:
    """The attempt ran out of time; it may still be submitted during the grace period"""
    attempt = get_attempt(attempt_id, session=session)
    if attempt.state is not AttemptState.InProgress:
        raise PreconditionViolation(f"cannot mark attempt {attempt_id} overdue in state {attempt.state.value}")

    quiz = get_quiz(attempt.quiz_id, session=session)
    attempt = attempt.model_copy(update={"state": AttemptState.Overdue})
    access = effective_access(quiz, attempt.user_id, session=session)
    time_check_state = compute_time_check_state(attempt, access, quiz.grace_period)
    storage.attempt.update(
        attempt_id, state=AttemptState.Overdue, time_check_state=time_check_state, session=session
    )
    attempt = attempt.model_copy(update={"time_check_state": time_check_state})

    notifier.notify(AttemptEvent.Overdue, quiz, attempt)
    return attempt


def abandon_attempt(attempt_id: AttemptID, *, session: Session = di.Provide["storage.persistent.session"]) -> Attempt:
    attempt = get_attempt(attempt_id, session=session)
    if not attempt.is_open:
        raise PreconditionViolation(f"cannot abandon attempt {attempt_id} in state {attempt.state.value}")

    storage.attempt.update(attempt_id, state=AttemptState.Abandoned, time_check_state=None, session=session)
    logger.info("abandoned attempt", extra={"attempt_id": attempt_id, "user_id": attempt.user_id})
    return attempt.model_copy(update={"state": AttemptState.Abandoned, "time_check_state": None})


def delete_attempt(
    attempt: Attempt,
    quiz: Quiz,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> None:
    """
    Delete an attempt and bring the user's grade up to date: the grade
    record goes with the user's last remaining attempt
    """
    if attempt.quiz_id != quiz.quiz_id:
        raise PreconditionViolation(
            f"attempt {attempt.attempt_id} belongs to quiz {attempt.quiz_id}, not {quiz.quiz_id}"
        )

    storage.attempt.delete(attempt.attempt_id, session=session)
    logger.info(
        "deleted attempt",
        extra={
            "quiz_id": quiz.quiz_id,
            "user_id": attempt.user_id,
            "attempt_id": attempt.attempt_id,
            "preview": attempt.is_preview,
        },
    )
    if attempt.is_preview:
        return

    remaining = storage.attempt.count(
        quiz_id=quiz.quiz_id, user_id=attempt.user_id, is_preview=False, session=session
    )
    if remaining:
        grading.save_best_grade(quiz, attempt.user_id, session=session, gradebook=gradebook, utcnow=utcnow)
    else:
        storage.grade.delete(quiz.quiz_id, attempt.user_id, session=session)
        gradebook.push_grades(quiz, {attempt.user_id: None})


def delete_previews(
    quiz: Quiz,
    user_id: UserID | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    previews = storage.attempt.find(quiz_id=quiz.quiz_id, user_id=user_id, is_preview=True, session=session)
    for attempt in previews:
        storage.attempt.delete(attempt.attempt_id, session=session)
    return len(previews)


def delete_all_attempts(
    quiz: Quiz,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
) -> int:
    """Purge every attempt at the quiz, previews included, with the quiz's grade records"""
    cleared = storage.grade.find(quiz_id=quiz.quiz_id, session=session)
    deleted = storage.attempt.delete_all(quiz.quiz_id, session=session)
    storage.grade.delete_all(quiz.quiz_id, session=session)
    logger.info(
        "deleted all attempts",
        extra={"quiz_id": quiz.quiz_id, "attempts": deleted, "grades": len(cleared)},
    )
    if cleared:
        gradebook.push_grades(quiz, {g.user_id: None for g in cleared})
    return deleted


def update_open_attempts(
    *,
    quiz_id: QuizID | None = None,
    user_id: UserID | None = None,
    group_id: GroupID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """
    Recompute time_check_state of every in-progress or overdue attempt
    matching the filters, writing only the attempts whose value changed.
    group_id selects attempts at quizzes that have an override for the group.
    """
    attempts = storage.attempt.find_open(quiz_id=quiz_id, user_id=user_id, group_id=group_id, session=session)

    quizzes = {q.quiz_id: q for q in storage.quiz.find(quiz_ids={a.quiz_id for a in attempts}, session=session)}
    group_ids: dict[UserID, set[GroupID]] = {}
    updated = 0
    for attempt in attempts:
        quiz = quizzes[attempt.quiz_id]
        if attempt.user_id not in group_ids:
            group_ids[attempt.user_id] = storage.group.group_ids(attempt.user_id, session=session)
        groups = group_ids[attempt.user_id]
        overrides = storage.override.find(
            quiz_id=quiz.quiz_id, user_id=attempt.user_id, group_ids=groups, session=session
        )
        access = resolve_effective_access(quiz, attempt.user_id, groups, overrides)
        time_check_state = compute_time_check_state(attempt, access, quiz.grace_period)
        if time_check_state != attempt.time_check_state:
            storage.attempt.update(attempt.attempt_id, time_check_state=time_check_state, session=session)
            updated += 1

    logger.debug(
        "updated open attempts",
        extra={
            "quiz_id": quiz_id,
            "user_id": user_id,
            "group_id": group_id,
            "open": len(attempts),
            "updated": updated,
        },
    )
    return updated
